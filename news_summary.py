# ================== Company News - extractive summaries & deep analysis ==================
import re
from typing import List, Dict, Any

from news_scoring import as_text

FETCH_FAILURE_MARKERS = ('302 Found', '403 Forbidden', 'NotFound')
SEE_ORIGINAL_NOTE = '。具体内容请查看原文链接。'
MIN_CONTENT_CHARS = 50
MIN_SENTENCE_CHARS = 10
FALLBACK_CHARS = 500

SUMMARY_KEYWORDS = [
    '营收', '净利润', '增长', '下降', '同比', '环比', '发布', '推出', '合作', '投资', '收购',
    '财报', '业绩', '股价', '涨', '跌', '产能', '销量', '收入', '利润', 'AI', '技术', '产品',
    'revenue', 'net income', 'profit', 'earnings', 'growth', 'year-over-year', 'launch',
    'partnership', 'investment', 'acquisition', 'shares', 'stock', 'deliveries', 'sales',
    'guidance', 'GPU', 'chip', 'product',
]
KEY_VERBS = ['公布', '发布', '宣布', '表示', '预计', '增长', '下降', '突破', '创新', '合作',
             'announced', 'reported', 'launched', 'unveiled', 'expects', 'said',
             'grew', 'rose', 'fell', 'partnership']

# ------------------- Cleaners -------------------
SCRIPT_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.I)
STYLE_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.I)
TAG_RE = re.compile(r"<[^>]*>")
DISALLOWED_CHARS_RE = re.compile(
    r"[^\u4e00-\u9fa5a-zA-Z0-9，。；：“”‘’（）【】、！？%+\-*/=!?.,;:'\"$()&\s]"
)
BOILERPLATE_SUBS = [
    (re.compile(r"(?:来源|发布时间|作者|记者|编辑)：.*?([\n。])"), r"\1"),
    (re.compile(r"本文来自.*?([\n。])"), r"\1"),
    (re.compile(r"(?:澎湃|百家|头条|企鹅|网易|搜狐|媒体)号"), ''),
    (re.compile(r"官方账号"), ''),
    (re.compile(r"下载APP|扫码关注|点击查看", re.I), ''),
    (re.compile(r"【[^】]*】"), ''),
    (re.compile(r"[（(]?(?:新华社|中新社)?(?:北京|上海|广州|深圳|杭州)\d{1,2}月\d{1,2}日电[）)]?"), ''),
    (re.compile(r"\b(?:stgw|nginx|cloudflare)\b|window\.\w+|function\s*\(\s*\)", re.I), ''),
    (re.compile(r"\b(?:var|let|const)\s+[A-Za-z_$][\w$]*\s*=", re.I), ''),
    (re.compile(r"\b(?:subscribe to our newsletter|sign up for our newsletter|accept all cookies|"
                r"advertisement|read more:|download the app)", re.I), ''),
]
WHITESPACE_RE = re.compile(r"\s+")
CJK_RE = re.compile(r"[\u4e00-\u9fa5]")

CLEAN_DROP_PATTERNS = [
    r"^Subscribe|^Sign in|^Log in|^Register", r"newsletter", r"cookie", r"advertisement",
    r"^Read more:", r"^Download the app", r"^Updated\s*-\s*",
    r"^责任编辑", r"^免责声明", r"^版权", r"扫码", r"^相关阅读", r"^点击",
]
CLEAN_KEEP_HINTS = [
    'revenue', 'earnings', 'profit', 'loss', 'guidance', 'merger', 'acquisition', 'stake',
    'buyback', 'dividend', 'deliveries', 'chip', 'gpu', 'regulator',
    '营收', '利润', '财报', '业绩', '收购', '回购', '分红', '交付', '芯片', '监管',
]

def strip_markup(text) -> str:
    text = as_text(text)
    while True:
        cleaned = TAG_RE.sub('', STYLE_RE.sub('', SCRIPT_RE.sub('', text)))
        if cleaned == text:
            return cleaned
        text = cleaned

def _strip_pass(text: str) -> str:
    text = strip_markup(text)
    text = DISALLOWED_CHARS_RE.sub('', text)
    for pattern, repl in BOILERPLATE_SUBS:
        text = pattern.sub(repl, text)
    return WHITESPACE_RE.sub(' ', text).strip()

def strip_boilerplate(text) -> str:
    """Remove markup, attribution lines and page debris.

    Passes are repeated until the text stops changing, so the result is a
    fixpoint: stripping an already stripped text returns it unchanged.
    """
    text = as_text(text)
    while True:
        cleaned = _strip_pass(text)
        if cleaned == text:
            return cleaned
        text = cleaned

def clean_lines(lines: List[str]) -> List[str]:
    kept = []
    for raw in lines:
        line = (raw or '').strip()
        if not line:
            continue
        if any(re.search(pat, line, re.I) for pat in CLEAN_DROP_PATTERNS):
            continue
        if len(line) > 280 and not any(k in line.lower() for k in CLEAN_KEEP_HINTS):
            continue
        kept.append(line)
    deduped, seen = [], set()
    for l in kept:
        key = re.sub(r"\s+", " ", l.lower())[:160]
        if key in seen:
            continue
        seen.add(key)
        deduped.append(l)
    return deduped

# ------------------- Summary -------------------
def _contains_keyword(sentence: str, keywords: List[str]) -> bool:
    low = sentence.lower()
    # acronyms only count in capitals ("AI" but not "said")
    return any((k in sentence) if k.isupper() else (k.lower() in low) for k in keywords)

def split_sentences(text: str) -> List[str]:
    parts = re.split(r"[。；;]|(?<=[.!?！？])\s+", text or '')
    return [p.strip() for p in parts if p and p.strip()]

def _terminate(sentence: str) -> str:
    if sentence[-1] in '.!?！？。':
        return sentence
    return sentence + ('。' if CJK_RE.search(sentence) else '.')

def _join_sentences(sentences: List[str]) -> str:
    out = ''
    for s in sentences:
        s = _terminate(s)
        out += s + ('' if CJK_RE.search(s) else ' ')
    return out.strip()

def summarize_article(title, content) -> str:
    """Condense a fetched article to its key sentences.

    Falls back to the title when there is nothing usable, and never raises.
    """
    title = as_text(title).strip()
    content = as_text(content)
    if not content.strip():
        return title
    if any(m in content for m in FETCH_FAILURE_MARKERS) or len(content.strip()) < MIN_CONTENT_CHARS:
        return title + SEE_ORIGINAL_NOTE

    cleaned = strip_boilerplate(content)
    if len(cleaned) < MIN_CONTENT_CHARS:
        return title

    picked = [s for s in split_sentences(cleaned)
              if len(s) > MIN_SENTENCE_CHARS and _contains_keyword(s, SUMMARY_KEYWORDS)]
    if not picked:
        return cleaned[:FALLBACK_CHARS].strip()
    return _join_sentences(picked)

# ------------------- Title hints -------------------
def logic_chain(title: str) -> str:
    low = as_text(title).lower()
    if '财报' in low or 'earnings' in low:
        return '数据发布→市场反应→投资建议'
    if '产品' in low or 'product' in low:
        return '产品发布→技术特点→市场影响'
    return '事件→进展→意义'

def extract_key_data(title: str) -> List[str]:
    return re.findall(r"\d+(?:\.\d+)?%", as_text(title))[:3]

def important_info(title: str) -> List[str]:
    title = as_text(title)
    return [p for p in ('发布', '合作', '订单', '增长', '突破') if p in title]

# ------------------- Deep analysis -------------------
DATA_RE = re.compile(
    r"\d+(?:\.\d+)?(?:\s?(?:亿|万|百万|千万|%|billion|million|bn\b))?(?:元|美元|港元)?", re.I
)
CORE_SPLIT_RE = re.compile(r"[。！？!?]|(?<!\d)\.(?!\d)")

# later rules override earlier ones
FOCUS_RULES = [
    (['增长', '提升', '改善', 'growth', 'grew', 'improve'],
     {'investment_focus': '业绩增长动力', 'opportunities': '业绩改善可能带来估值修复'}),
    (['下滑', '下降', '亏损', 'decline', 'fell', 'loss'],
     {'investment_focus': '业绩压力因素', 'risks': '业绩下滑可能影响股价'}),
    (['创新', '技术', '研发', 'innovation', 'technology', 'r&d'],
     {'investment_focus': '技术创新能力', 'opportunities': '技术突破可能带来长期竞争优势'}),
]

SHORT_TERM_RULES = [
    (['财报', '业绩', '盈利', 'earnings', 'quarterly results', 'profit'], '直接影响股价，财报季关键信息'),
    (['并购', '收购', '重组', 'merger', 'acquisition', 'restructuring'], '可能引发股价大幅波动，需关注交易细节'),
    (['监管', '调查', '罚款', 'regulator', 'probe', 'penalty'], '可能带来负面情绪，影响短期股价'),
    (['合作', '签约', '订单', 'partnership', 'contract', 'order'], '正面消息，可能提振市场信心'),
]
SHORT_TERM_DEFAULT = '对短期股价影响有限，需结合市场环境判断'

LONG_TERM_RULES = [
    (['战略', '转型', '布局', 'strategy', 'strategic', 'transformation'], '影响公司长期发展方向，需持续跟踪'),
    (['技术', '创新', '研发', 'technology', 'innovation', 'r&d'], '增强长期竞争力，但需关注商业化进展'),
    (['市场', '份额', '竞争', 'market share', 'competition', 'competitor'], '影响市场地位，决定长期增长潜力'),
    (['监管', '政策', '合规', 'regulation', 'policy', 'compliance'], '可能改变行业格局，影响长期经营环境'),
]
LONG_TERM_DEFAULT = '对长期价值影响需结合公司基本面综合判断'

def extract_key_information(text) -> Dict[str, Any]:
    result = {
        'core_points': [],
        'important_data': [],
        'investment_focus': '',
        'risks': '',
        'opportunities': '',
    }
    text = as_text(text)
    if not text:
        return result

    result['important_data'] = [m.group(0).strip() for m in DATA_RE.finditer(text)][:5]

    sentences = [s.strip() for s in CORE_SPLIT_RE.split(text) if len(s.strip()) > MIN_SENTENCE_CHARS]
    result['core_points'] = [s for s in sentences if _contains_keyword(s, KEY_VERBS)][:3]

    low = text.lower()
    for words, updates in FOCUS_RULES:
        if any(w in low for w in words):
            result.update(updates)
    return result

def _first_rule(text: str, rules, default: str) -> str:
    for words, sentence in rules:
        if any(w in text for w in words):
            return sentence
    return default

def _title_and_summary(news: Dict[str, Any]) -> str:
    return f"{as_text(news.get('title'))} {as_text(news.get('summary'))}".lower()

def assess_short_term_impact(news: Dict[str, Any]) -> str:
    return _first_rule(_title_and_summary(news), SHORT_TERM_RULES, SHORT_TERM_DEFAULT)

def assess_long_term_impact(news: Dict[str, Any]) -> str:
    return _first_rule(_title_and_summary(news), LONG_TERM_RULES, LONG_TERM_DEFAULT)

def build_deep_analysis(news: Dict[str, Any]) -> Dict[str, Any]:
    summary = as_text(news.get('deepSummary')) or as_text(news.get('summary'))
    info = extract_key_information(summary)
    core_points = info['core_points'] or ([summary[:100] + '...'] if summary else [])
    return {
        'title': as_text(news.get('title')),
        'source': as_text(news.get('source')) or '未知来源',
        'core_points': core_points,
        'important_data': info['important_data'],
        'short_term': assess_short_term_impact(news),
        'long_term': assess_long_term_impact(news),
        'investment_focus': info['investment_focus'] or '公司基本面变化',
        'risks': info['risks'] or '市场波动风险',
        'opportunities': info['opportunities'] or '需结合市场环境判断',
        'summary': summary,
    }
