import sys
import datetime as dt
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# 2026-10-19 12:00 in Beijing
FIXED_NOW = dt.datetime(2026, 10, 19, 4, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def make_news():
    def _make(ticker="GOOGL", url="https://www.reuters.com/a", days_ago=0, score=5.0,
              now=FIXED_NOW, **extra):
        item = {
            "id": f"{ticker}-{url}",
            "title": f"{ticker} headline {url}",
            "summary": "snippet",
            "url": url,
            "source": "Reuters",
            "publishTime": (now - dt.timedelta(days=days_ago)).isoformat(),
            "company": ticker,
            "stockImpact": {"score": score},
            "impactScore": 5,
            "valueScore": 5,
        }
        item.update(extra)
        return item
    return _make
