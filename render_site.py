# ================== Company News - static page renderer ==================
import os, sys, html
import datetime as dt
from typing import List, Dict, Any

from company_news import COMPANIES, company_by_ticker
from export_utils import CST, find_snapshot, load_snapshot, _date_key_cst, _time_key_cst
from news_scoring import score_news, scoring_basis, overall_score
from news_summary import build_deep_analysis

SITE_OUTPUT = os.getenv('SITE_OUTPUT', 'index.html')
MAX_CARDS = int(os.getenv('MAX_CARDS', '8'))
SITE_TITLE = '金珂重点关注公司新闻动态'
WEEKDAYS = ['星期一', '星期二', '星期三', '星期四', '星期五', '星期六', '星期日']

def esc(value) -> str:
    return html.escape('' if value is None else str(value))

def safe_url(url) -> str:
    u = (url or '').strip()
    return esc(u) if u.lower().startswith(('http://', 'https://')) else '#'

def star_rating(score: float) -> str:
    filled = max(0, min(5, int(round(score / 2))))
    return '★' * filled + '☆' * (5 - filled)

def impact_badge_class(score: float) -> str:
    if score >= 7: return 'bg-red-100 text-red-800'
    if score >= 5: return 'bg-yellow-100 text-yellow-800'
    return 'bg-green-100 text-green-800'

# ------------------- Card -------------------
def _list_items(values: List[str], css: str = '') -> str:
    return "\n".join(f'<li class="{css}">{esc(v)}</li>' for v in values)

def render_card(news: Dict[str, Any]) -> str:
    if 'impactDesc' not in news or 'valueDesc' not in news:
        score_news(news)
    impact, value = news['impactScore'], news['valueScore']
    company = company_by_ticker(news.get('company', ''))
    color = company.get('color') or news.get('color') or 'bg-gray-100 text-gray-800'
    icon = company.get('icon') or news.get('icon') or '📰'
    name = company.get('name') or news.get('companyName') or news.get('company') or '未知公司'
    analysis = build_deep_analysis(news)
    overall = overall_score(impact, value)

    data_block = ''
    if analysis['important_data']:
        data_block = (
            '<h5 class="text-md font-medium mt-3 mb-1">📈 重要数据</h5>\n'
            f'<ul class="list-none">{_list_items(analysis["important_data"], "font-semibold text-blue-700")}</ul>'
        )

    return f"""
      <div class="bg-white rounded-xl p-6 shadow-sm card-hover border border-gray-100 mb-6" data-company="{esc(news.get('company'))}">
        <div class="flex items-start justify-between mb-6">
          <div class="flex items-center space-x-3">
            <span class="flex items-center justify-center w-10 h-10 rounded-full {esc(color)}"><span class="text-base">{esc(icon)}</span></span>
            <div>
              <span class="inline-block px-3 py-1 text-sm font-medium rounded-full {esc(color)}">{esc(name)}</span>
              <span class="ml-2 text-sm text-gray-500">{esc(news.get('company'))}</span>
              <div class="mt-1 text-xs text-gray-500">{esc(analysis['source'])}</div>
            </div>
          </div>
          <div class="text-right">
            <span class="inline-block px-3 py-1 text-xs font-medium rounded {impact_badge_class(impact)}">{esc(news['impactDesc']['level'])} ({impact}/10)</span>
            <div class="text-xs text-gray-600 mt-2">{esc(news['impactDesc']['description'])}</div>
          </div>
        </div>

        <h3 class="text-xl font-bold text-gray-900 mb-4">{esc(news.get('title'))}</h3>

        <div class="mb-6 p-4 bg-gray-50 rounded-lg border border-gray-200 prose prose-sm max-w-none">
          <h4 class="text-lg font-semibold mb-2">📊 深度分析</h4>
          <h5 class="text-md font-medium mt-3 mb-1">🔍 核心要点</h5>
          <ol class="list-decimal ml-5">{_list_items(analysis['core_points'], 'font-semibold')}</ol>
          {data_block}
          <h5 class="text-md font-medium mt-3 mb-1">💼 业务影响分析</h5>
          <p><b>短期影响：</b>{esc(analysis['short_term'])}</p>
          <p><b>长期影响：</b>{esc(analysis['long_term'])}</p>
          <h5 class="text-md font-medium mt-3 mb-1">🎯 投资参考</h5>
          <ol class="list-decimal ml-5">
            <li><b>关注点：</b>{esc(analysis['investment_focus'])}</li>
            <li><b>风险提示：</b>{esc(analysis['risks'])}</li>
            <li><b>机会窗口：</b>{esc(analysis['opportunities'])}</li>
          </ol>
          <h5 class="text-md font-medium mt-3 mb-1">📝 原文摘要</h5>
          <p>{esc(analysis['summary'])}</p>
        </div>

        <div class="mb-6 p-4 bg-blue-50 rounded-lg border border-blue-100">
          <h4 class="text-md font-semibold text-blue-800 mb-3">📊 评分逻辑说明</h4>
          <div class="grid grid-cols-1 md:grid-cols-2 gap-4">
            <div>
              <h5 class="text-sm font-medium text-gray-700 mb-1">影响程度评分：{impact}/10</h5>
              <p class="text-xs text-gray-600">{esc(news['impactDesc']['description'])}</p>
              <div class="mt-2 text-xs text-gray-500">评分依据：{esc('、'.join(scoring_basis(news, 'impact')))}</div>
            </div>
            <div>
              <h5 class="text-sm font-medium text-gray-700 mb-1">价值评分：{value}/10</h5>
              <p class="text-xs text-gray-600">{esc(news['valueDesc']['description'])}</p>
              <div class="mt-2 text-xs text-gray-500">评分依据：{esc('、'.join(scoring_basis(news, 'value')))}</div>
            </div>
          </div>
        </div>

        <div class="flex items-center justify-between pt-4 border-t border-gray-200">
          <div class="text-sm text-gray-600">
            <span class="font-medium">综合评分：</span>
            <span class="ml-2">{star_rating(overall)} <span class="ml-1">{overall}/10</span></span>
          </div>
          <a href="{safe_url(news.get('url'))}" target="_blank" rel="noopener noreferrer"
             class="inline-flex items-center px-4 py-2 text-sm font-medium text-white bg-blue-600 rounded-lg hover:bg-blue-700">阅读原文</a>
        </div>
      </div>"""

# ------------------- Page -------------------
def render_company_stats(news_list: List[Dict[str, Any]]) -> str:
    cells = []
    for company in COMPANIES.values():
        own = [n for n in news_list if n.get('company') == company['ticker']]
        high = sum(1 for n in own if (n.get('impactScore') or 0) >= 7)
        cells.append(f"""
        <div class="bg-white rounded-lg p-4 shadow-sm border border-gray-200">
          <div class="flex items-center gap-3 mb-2"><span class="text-xl">{esc(company['icon'])}</span><span class="font-semibold text-gray-900">{esc(company['name'])}</span></div>
          <div class="text-sm text-gray-600">
            <div class="flex items-center justify-between"><span>新闻数量:</span><span class="font-medium">{len(own)}条</span></div>
            <div class="flex items-center justify-between mt-1"><span>高影响新闻:</span><span class="font-medium text-red-600">{high}条</span></div>
          </div>
        </div>""")
    return "".join(cells)

def render_page(news_list: List[Dict[str, Any]], snapshot: Dict[str, Any] = None,
                now: dt.datetime = None) -> str:
    snapshot = snapshot or {}
    local = (now or dt.datetime.now(dt.timezone.utc)).astimezone(CST)
    date_str = f"{local.year}年{local.month}月{local.day}日 {WEEKDAYS[local.weekday()]}"
    for n in news_list:
        score_news(n)

    if news_list:
        body = '<div class="space-y-6">' + "".join(render_card(n) for n in news_list) + '</div>'
    else:
        body = """
      <div class="text-center py-12">
        <div class="text-5xl mb-4">📰</div>
        <h3 class="text-xl font-semibold text-gray-700 mb-2">今日暂无新闻</h3>
        <p class="text-gray-500">请稍后再试或检查网络连接</p>
      </div>"""

    searched = snapshot.get('totalSearched', 0)
    return f"""<!DOCTYPE html>
<html lang="zh-CN">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{SITE_TITLE} - 深度分析版</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <style>
    .card-hover {{ transition: all 0.3s ease; }}
    .card-hover:hover {{ transform: translateY(-2px); box-shadow: 0 10px 25px -5px rgba(0, 0, 0, 0.1); }}
    .bg-gradient-primary {{ background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); }}
  </style>
</head>
<body class="bg-gray-50 min-h-screen">
  <div class="max-w-6xl mx-auto px-4 py-8">
    <header class="mb-10">
      <div class="flex flex-col md:flex-row md:items-center justify-between mb-6">
        <div>
          <h1 class="text-3xl font-bold text-gray-900">📈 {SITE_TITLE}</h1>
          <p class="text-gray-600 mt-2">深度分析 · 股价影响评估 · 评分逻辑透明</p>
        </div>
        <div class="mt-4 md:mt-0 px-4 py-2 bg-white rounded-lg shadow-sm border border-gray-200 text-gray-700 font-medium">{esc(date_str)}</div>
      </div>
      <div class="bg-gradient-primary rounded-2xl p-6 text-white shadow-lg flex items-center justify-between">
        <div>
          <h2 class="text-xl font-bold mb-2">🎯 今日精选</h2>
          <p class="opacity-90">精选 {len(news_list)} 条（从 {esc(searched)} 条中筛选）</p>
        </div>
        <div class="text-center">
          <div class="text-2xl font-bold">{len(COMPANIES)}</div>
          <div class="text-sm opacity-80">关注公司</div>
        </div>
      </div>
    </header>

    <section class="mb-8">
      <div class="grid grid-cols-2 md:grid-cols-5 gap-3">{render_company_stats(news_list)}</div>
    </section>

    <main>
      <div class="mb-6 flex items-center justify-between">
        <h3 class="text-xl font-bold text-gray-900">📰 今日深度分析</h3>
        <div class="text-sm text-gray-500">最后更新: {_time_key_cst(now)}</div>
      </div>
      {body}
    </main>

    <footer class="mt-12 pt-8 border-t border-gray-200 text-center text-gray-400 text-sm">
      <p>⚠️ 免责声明: 本网站内容仅供参考，不构成投资建议。投资有风险，决策需谨慎。</p>
    </footer>
  </div>
</body>
</html>
"""

# ------------------- Runner -------------------
def run_render(base_dir: str = None, output: str = None, max_cards: int = None,
               now: dt.datetime = None):
    output = output or SITE_OUTPUT
    max_cards = max_cards or MAX_CARDS
    print(f"[{dt.datetime.now()}] Start render")

    path = find_snapshot(_date_key_cst(now), base_dir)
    if not path:
        print('[warn] no news snapshot found; run the fetch step first')
        return None
    snapshot = load_snapshot(path)
    news = snapshot['news'][:max_cards]
    print(f"   snapshot: {path} ({len(snapshot['news'])} items, rendering {len(news)})")

    page = render_page(news, snapshot, now)
    os.makedirs(os.path.dirname(output) or '.', exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        f.write(page)

    for n in news:
        print(f"   {n.get('company', '?')}: impact {n['impactScore']}/10, value {n['valueScore']}/10")
    print(f"[{dt.datetime.now()}] Wrote {output}")
    return output

def main() -> int:
    return 0 if run_render() else 1

if __name__ == "__main__":
    sys.exit(main())
