import os, json, glob, datetime as dt
from typing import List, Dict, Any, Optional

CST = dt.timezone(dt.timedelta(hours=8))
DATA_DIR = os.getenv('NEWS_DATA_DIR', os.path.join('scripts', 'data'))
SNAPSHOT_PREFIX = 'company-news'
FALLBACK_SNAPSHOTS = (f'{SNAPSHOT_PREFIX}-fixed.json', f'{SNAPSHOT_PREFIX}-test.json')

# ---------- time helpers ----------
def _date_key_cst(now_utc=None) -> str:
    if not now_utc:
        now_utc = dt.datetime.now(dt.timezone.utc)
    return now_utc.astimezone(CST).strftime("%Y-%m-%d")

def _time_key_cst(now_utc=None) -> str:
    if not now_utc:
        now_utc = dt.datetime.now(dt.timezone.utc)
    return now_utc.astimezone(CST).strftime("%H:%M")

# ---------- normalization ----------
def normalize_for_snapshot(news: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop working fields (leading underscore) so only the NewsItem shape is written."""
    out = []
    for item in news or []:
        out.append({k: v for k, v in item.items() if not k.startswith('_')})
    return out

def build_snapshot(news: List[Dict[str, Any]], companies: List[str],
                   counters: Dict[str, int] = None, now_utc=None) -> Dict[str, Any]:
    counters = counters or {}
    if not now_utc:
        now_utc = dt.datetime.now(dt.timezone.utc)
    items = normalize_for_snapshot(news)
    return {
        "date": now_utc.isoformat(),
        "totalSearched": counters.get("totalSearched", 0),
        "selected": len(items),
        "realTimeNews": counters.get("realTimeNews", 0),
        "importantNews": counters.get("importantNews", 0),
        "deepNews": counters.get("deepNews", 0),
        "companies": list(companies),
        "news": items,
    }

# ---------- io ----------
def _load_json(path: str):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        print(f"[warn] could not read {path}: {e}")
        return {}

def _dump_json(path: str, obj: Any):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)

# ---------- snapshots ----------
def snapshot_path(date_key: str, base_dir: str = None) -> str:
    return os.path.join(base_dir or DATA_DIR, f"{SNAPSHOT_PREFIX}-{date_key}.json")

def write_snapshot(snapshot: Dict[str, Any], date_key: str = None, base_dir: str = None) -> str:
    """
    Write one run's snapshot.

    File path: {base_dir}/company-news-YYYY-MM-DD.json
    A later run on the same day overwrites the earlier file.
    """
    path = snapshot_path(date_key or _date_key_cst(), base_dir)
    _dump_json(path, snapshot)
    return path

def find_snapshot(date_key: str = None, base_dir: str = None) -> Optional[str]:
    """
    Pick the snapshot to render: today's file, else the newest dated file,
    else the fixed sample, else the test sample. None when nothing exists.
    """
    base_dir = base_dir or DATA_DIR
    today = snapshot_path(date_key or _date_key_cst(), base_dir)
    if os.path.exists(today):
        return today
    dated = sorted(glob.glob(os.path.join(base_dir, f"{SNAPSHOT_PREFIX}-[0-9][0-9][0-9][0-9]-[0-9][0-9]-[0-9][0-9].json")))
    if dated:
        return dated[-1]
    for name in FALLBACK_SNAPSHOTS:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            return path
    return None

def load_snapshot(path: str) -> Dict[str, Any]:
    data = _load_json(path)
    if not isinstance(data, dict):
        data = {}
    news = data.get("news")
    data["news"] = [n for n in news if isinstance(n, dict)] if isinstance(news, list) else []
    data.setdefault("companies", [])
    return data
