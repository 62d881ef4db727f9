import sys
import traceback
from typing import Any, Callable

import company_news
import render_site


def _safe_run(run_fn: Callable[..., Any], **kwargs) -> Any:
    try:
        return run_fn(**kwargs)
    except Exception as e:
        print(f"[warn] {getattr(run_fn, '__module__', 'pipeline')}.{run_fn.__name__} failed: {e}")
        traceback.print_exc()
        return None

def run() -> bool:
    # fetch writes today's snapshot; render falls back to the newest one if fetch failed
    snapshot = _safe_run(company_news.run_fetch)
    output = _safe_run(render_site.run_render)

    fetched = len(snapshot['news']) if snapshot else 0
    print("Fetched:", fetched, "items")
    print("Rendered:", output or "nothing")
    return output is not None

def main() -> int:
    return 0 if run() else 1

if __name__ == "__main__":
    sys.exit(main())
