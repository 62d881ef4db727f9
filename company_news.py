# ================== Company News - tracked companies, authority sources, scored snapshots ==================
import os, re, sys, time, hashlib
import email.utils
import datetime as dt
from typing import List, Dict, Any, Optional
from urllib.parse import urlparse, quote_plus

import requests, feedparser
import trafilatura
from bs4 import BeautifulSoup

from news_scoring import stock_impact, impact_score, value_score
from news_summary import summarize_article, clean_lines, logic_chain, extract_key_data, important_info
from export_utils import CST, build_snapshot, write_snapshot, _date_key_cst

# ------------------- Config -------------------
SEARCH_API_URL = os.getenv('SEARCH_API_URL', '')
SEARCH_API_KEY = os.getenv('SEARCH_API_KEY', '')
MAX_ITEMS_PER_QUERY = int(os.getenv('MAX_ITEMS_PER_QUERY', '3'))
FINAL_NEWS_COUNT = int(os.getenv('FINAL_NEWS_COUNT', '10'))
REQUEST_DELAY_SEC = float(os.getenv('REQUEST_DELAY_SEC', '0.8'))

PER_COMPANY_MAX = 3
RECENT_DAYS = 7
RELAXED_DAYS = 15
MIN_AUTHORITY_ITEMS = 3
ARTICLE_MAX_CHARS = 10000
USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'
NEWS_RSS_SEARCH = 'https://news.google.com/rss/search?q={q}&hl=zh-CN&gl=CN&ceid=CN:zh-Hans'

UTC = dt.timezone.utc
ISO_FRACTION_RE = re.compile(r"\.(\d+)")

# Sources
AUTHORITY_SOURCES = [
    # domestic finance media
    'caixin.com', 'eeo.com.cn', 'yicai.com', 'stcn.com', 'cnstock.com.cn',
    'cs.com.cn', 'cls.cn', 'wallstreetcn.com', 'nbd.com.cn', 'eastmoney.com',
    '10jqka.com.cn', 'xueqiu.com', 'cninfo.com.cn', 'finance.sina.com.cn', 'jiemian.com',
    # international
    'bloomberg.com', 'reuters.com', 'ft.com', 'wsj.com',
]

# priority 1 = real-time (1d), 2 = important (3d), 3 = analysis (3d)
COMPANIES = {
    'google': {
        'name': '谷歌', 'ticker': 'GOOGL', 'icon': '🔍',
        'color': 'bg-blue-100 text-blue-800', 'bg_color': 'from-blue-50 to-blue-100',
        'queries': [
            {'query': 'Google 谷歌 最新新闻 今天 实时', 'time_range': '1d', 'priority': 1},
            {'query': 'Google Alphabet 财报 盈利 AI产品发布', 'time_range': '3d', 'priority': 2},
            {'query': 'Google GOOGL 股价 分析 投资', 'time_range': '3d', 'priority': 3},
        ],
    },
    'nvidia': {
        'name': '英伟达', 'ticker': 'NVDA', 'icon': '💻',
        'color': 'bg-green-100 text-green-800', 'bg_color': 'from-green-50 to-green-100',
        'queries': [
            {'query': 'NVIDIA 英伟达 最新新闻 今天', 'time_range': '1d', 'priority': 1},
            {'query': 'NVIDIA 财报 GPU AI芯片 产品发布', 'time_range': '3d', 'priority': 2},
            {'query': 'NVDA 股价 分析 投资', 'time_range': '3d', 'priority': 3},
        ],
    },
    'tesla': {
        'name': '特斯拉', 'ticker': 'TSLA', 'icon': '🚗',
        'color': 'bg-red-100 text-red-800', 'bg_color': 'from-red-50 to-red-100',
        'queries': [
            {'query': 'Tesla 特斯拉 最新新闻 今天', 'time_range': '1d', 'priority': 1},
            {'query': 'Tesla 财报 电动车 自动驾驶 马斯克', 'time_range': '3d', 'priority': 2},
            {'query': 'TSLA 股价 分析 投资', 'time_range': '3d', 'priority': 3},
        ],
    },
    'tencent': {
        'name': '腾讯', 'ticker': '0700.HK', 'icon': '🎮',
        'color': 'bg-purple-100 text-purple-800', 'bg_color': 'from-purple-50 to-purple-100',
        'queries': [
            {'query': '腾讯 最新新闻 今天', 'time_range': '1d', 'priority': 1},
            {'query': '腾讯 财报 游戏 社交 投资', 'time_range': '3d', 'priority': 2},
            {'query': '0700.HK 股价 分析 投资', 'time_range': '3d', 'priority': 3},
        ],
    },
    'maotai': {
        'name': '茅台', 'ticker': '600519.SS', 'icon': '🍶',
        'color': 'bg-amber-100 text-amber-800', 'bg_color': 'from-amber-50 to-amber-100',
        'queries': [
            {'query': '茅台 最新新闻 今天', 'time_range': '1d', 'priority': 1},
            {'query': '茅台 财报 白酒 消费', 'time_range': '3d', 'priority': 2},
            {'query': '600519.SS 股价 分析 投资', 'time_range': '3d', 'priority': 3},
        ],
    },
}
PRIORITY_COUNTERS = {1: 'realTimeNews', 2: 'importantNews', 3: 'deepNews'}

# ------------------- Utilities -------------------
def now_utc():
    return dt.datetime.now(tz=UTC)

def domain_of(url: str) -> str:
    try:
        return re.sub(r"^www\.", "", (urlparse(url).hostname or "").lower())
    except ValueError:
        return ""

def parse_time(value) -> Optional[dt.datetime]:
    """ISO string, RFC 2822 date, epoch seconds or feedparser time struct -> aware
    datetime; None when unparseable. Naive timestamps are taken as Beijing time,
    which is what the search API returns."""
    if value is None or value == '':
        return None
    if isinstance(value, time.struct_time):
        return dt.datetime(*value[:6], tzinfo=UTC)
    raw = str(value).strip()
    if (isinstance(value, (int, float)) and not isinstance(value, bool)) or raw.isdigit():
        try:
            return dt.datetime.fromtimestamp(float(raw), tz=UTC)
        except (OverflowError, OSError, ValueError):
            print('[warn] unparseable timestamp:', raw)
            return None
    try:
        # fromisoformat before 3.11 only takes 3 or 6 fraction digits
        iso = ISO_FRACTION_RE.sub(lambda m: '.' + (m.group(1) + '000000')[:6], raw, count=1)
        ts = dt.datetime.fromisoformat(iso.replace('Z', '+00:00'))
    except ValueError:
        try:
            ts = email.utils.parsedate_to_datetime(raw)
        except (TypeError, ValueError, IndexError):
            print('[warn] unparseable timestamp:', raw)
            return None
    return ts if ts.tzinfo else ts.replace(tzinfo=CST)

def news_id(ticker: str, url: str) -> str:
    return f"{ticker}-{hashlib.sha1((url or '').encode('utf-8')).hexdigest()[:10]}"

def company_by_ticker(ticker: str) -> Dict[str, Any]:
    for key, company in COMPANIES.items():
        if company['ticker'] == ticker:
            return dict(company, key=key)
    return {}

# ------------------- Authority filter -------------------
def is_authority_source(url: str) -> bool:
    d = domain_of(url)
    return bool(d) and any(d == src or d.endswith('.' + src) for src in AUTHORITY_SOURCES)

def filter_by_authority(items: List[Dict[str, Any]], min_items: int = MIN_AUTHORITY_ITEMS) -> List[Dict[str, Any]]:
    """Authority sources first; back-fill with other sources up to `min_items`."""
    def check_url(it):
        return it.get('source_url') or it.get('url') or ''
    usable = [it for it in items if it.get('url') and domain_of(check_url(it))]
    picked = [it for it in usable if is_authority_source(check_url(it))]
    if len(picked) < min_items:
        others = [it for it in usable if not is_authority_source(check_url(it))]
        picked += others[:min_items - len(picked)]
    return picked

# ------------------- Search -------------------
def _search_api(query: str, time_range: str, count: int) -> List[Dict[str, Any]]:
    headers = {'Content-Type': 'application/json'}
    if SEARCH_API_KEY:
        headers['Authorization'] = f'Bearer {SEARCH_API_KEY}'
    payload = {
        'query': query,
        'search_type': 'web',
        'count': count,
        'time_range': time_range,
        'need_summary': False,
        'need_content': False,
    }
    r = requests.post(SEARCH_API_URL, headers=headers, json=payload, timeout=20)
    r.raise_for_status()
    return r.json().get('web_items') or []

def _search_rss(query: str, time_range: str, count: int) -> List[Dict[str, Any]]:
    feed = feedparser.parse(NEWS_RSS_SEARCH.format(q=quote_plus(f"{query} when:{time_range}")))
    out = []
    for e in feed.entries[:max(count * 4, 12)]:
        src = getattr(e, 'source', None) or {}
        ts = parse_time(getattr(e, 'published_parsed', None))
        out.append({
            'title': (getattr(e, 'title', '') or '').strip(),
            'url': getattr(e, 'link', '') or '',
            'source_url': src.get('href', ''),
            'site_name': src.get('title', ''),
            'publish_time': ts.isoformat() if ts else '',
            'snippet': BeautifulSoup(getattr(e, 'summary', '') or '', 'html.parser').get_text(' ', strip=True),
        })
    return out

def search_news(query: str, time_range: str = '1d', max_results: int = 10) -> List[Dict[str, Any]]:
    print(f"→ Searching: \"{query}\" (range {time_range})")
    try:
        if SEARCH_API_URL:
            raw = _search_api(query, time_range, max_results)
        else:
            raw = _search_rss(query, time_range, max_results)
    except Exception as ex:
        print('[warn] search error:', query, ex)
        return []

    if not raw:
        print('   [info] no results')
        return []

    filtered = filter_by_authority(raw)[:max_results]
    print(f"   pulled {len(raw)}, kept {len(filtered)} (authority first)")
    return [{
        'title': it.get('title') or '无标题',
        'url': it['url'],
        'source': it.get('site_name') or '未知来源',
        'publish_time': it.get('publish_time') or '',
        'snippet': it.get('snippet') or '无摘要',
    } for it in filtered]

# ------------------- Article text -------------------
def fetch_article_content(url: str) -> str:
    """Article body for summarising: extracted text when possible, else the raw page.
    Error statuses come back as their status line so the summarizer can spot them."""
    try:
        r = requests.get(url, timeout=25, headers={'User-Agent': USER_AGENT})
    except Exception as ex:
        print('[warn] article fetch error:', url, ex)
        return ''
    if r.status_code >= 300:
        print('[warn] article fetch status:', url, r.status_code)
        return f"{r.status_code} {r.reason or ''}".strip()
    html_text = r.text or ''

    extracted = ''
    try:
        extracted = trafilatura.extract(
            html_text, include_comments=False, include_tables=False,
            url=url, favor_precision=True
        ) or ''
    except Exception as ex:
        print('[warn] extraction error:', url, ex)

    if not extracted:
        soup = BeautifulSoup(html_text, 'html.parser')
        extracted = "\n".join(p.get_text(' ', strip=True) for p in soup.find_all('p'))

    text = "\n".join(clean_lines(extracted.splitlines())) if extracted.strip() else html_text
    return text[:ARTICLE_MAX_CHARS]

# ------------------- Analysis -------------------
def analyze_article(article: Dict[str, Any], company_key: str, priority: int) -> Dict[str, Any]:
    company = COMPANIES[company_key]
    title = article.get('title') or '无标题'
    url = article.get('url') or ''
    raw = fetch_article_content(url) if url else ''
    published = parse_time(article.get('publish_time')) or now_utc()

    item = {
        'id': news_id(company['ticker'], url),
        'title': title,
        'summary': article.get('snippet') or '无摘要',
        'url': url,
        'source': article.get('source') or '未知来源',
        'publishTime': published.isoformat(),
        'company': company['ticker'],
        'companyKey': company_key,
        'companyName': company['name'],
        'color': company['color'],
        'icon': company['icon'],
        'priority': priority,
        'stockImpact': stock_impact(title, priority),
        'logicChain': logic_chain(title),
        'keyData': extract_key_data(title),
        'importantInfo': important_info(title),
        'deepSummary': summarize_article(title, raw),
    }
    item['impactScore'] = impact_score(item)
    item['valueScore'] = value_score(item)
    return item

def rank_key(item: Dict[str, Any]):
    return (
        (item.get('stockImpact') or {}).get('score', 0),
        item.get('impactScore', 0),
        item.get('valueScore', 0),
    )

def _cutoff(now: dt.datetime, days: int) -> dt.datetime:
    local = now.astimezone(CST) - dt.timedelta(days=days)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)

def select_news(all_news: List[Dict[str, Any]], now: dt.datetime = None,
                limit: int = None) -> List[Dict[str, Any]]:
    """
    Per company keep the best 1-3 items, then keep everything from the last
    RECENT_DAYS. A company left with nothing gets its best item from the last
    RELAXED_DAYS. Highest ranked `limit` items win.
    """
    now = now or now_utc()
    limit = limit or FINAL_NEWS_COUNT

    unique, seen_urls = [], set()
    for n in all_news:
        if n.get('url') in seen_urls:
            continue
        seen_urls.add(n.get('url'))
        unique.append(n)

    pooled = []
    for company in COMPANIES.values():
        own = sorted([n for n in unique if n.get('company') == company['ticker']], key=rank_key, reverse=True)
        pooled += own[:PER_COMPANY_MAX]
    pooled.sort(key=rank_key, reverse=True)

    recent_cut, relaxed_cut = _cutoff(now, RECENT_DAYS), _cutoff(now, RELAXED_DAYS)
    selected, per_company = [], {}
    for n in pooled:
        ts = parse_time(n.get('publishTime'))
        if ts and ts >= recent_cut:
            selected.append(n)
            per_company[n['company']] = per_company.get(n['company'], 0) + 1

    for company in COMPANIES.values():
        ticker = company['ticker']
        if per_company.get(ticker):
            continue
        for n in pooled:
            ts = parse_time(n.get('publishTime'))
            if n.get('company') == ticker and ts and ts >= relaxed_cut:
                selected.append(n)
                per_company[ticker] = 1
                break

    selected.sort(key=rank_key, reverse=True)
    return selected[:limit]

# ------------------- Core runner -------------------
def run_fetch(now: dt.datetime = None, base_dir: str = None) -> Dict[str, Any]:
    now = now or now_utc()
    print(f"[{dt.datetime.now()}] Start company news fetch: "
          f"{', '.join(c['name'] for c in COMPANIES.values())}")
    print(f"   search backend: {'API' if SEARCH_API_URL else 'news RSS'}, per query={MAX_ITEMS_PER_QUERY}")

    counters = {'totalSearched': 0, 'realTimeNews': 0, 'importantNews': 0, 'deepNews': 0}
    all_news: List[Dict[str, Any]] = []
    for key, company in COMPANIES.items():
        print(f"→ {company['name']} ({company['ticker']})")
        for q in company['queries']:
            results = search_news(q['query'], q['time_range'], MAX_ITEMS_PER_QUERY)
            counters['totalSearched'] += len(results)
            counters[PRIORITY_COUNTERS.get(q['priority'], 'deepNews')] += len(results)
            for article in results:
                all_news.append(analyze_article(article, key, q['priority']))
            time.sleep(REQUEST_DELAY_SEC)

    final = select_news(all_news, now)
    if not final:
        print('[info] No news selected this run.')

    snapshot = build_snapshot(final, list(COMPANIES), counters, now)
    path = write_snapshot(snapshot, _date_key_cst(now), base_dir)

    print(f"[{dt.datetime.now()}] Saved {path}")
    print(f"   searched={counters['totalSearched']} realtime={counters['realTimeNews']} "
          f"important={counters['importantNews']} analysis={counters['deepNews']} selected={len(final)}")
    for i, n in enumerate(final[:5], 1):
        print(f"   {i}. {n['title'][:80]} (impact {n['impactScore']}/10, value {n['valueScore']}/10)")
    return snapshot

def main() -> int:
    snapshot = run_fetch()
    return 0 if snapshot['news'] else 1

if __name__ == "__main__":
    sys.exit(main())
