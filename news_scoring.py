# ================== Company News - heuristic impact / value scoring ==================
import re
from typing import List, Dict, Any

BASE_SCORE = 5
MIN_SCORE, MAX_SCORE = 1, 10

# ------------------- Tables -------------------
IMPACT_KEYWORDS = {
    # earnings
    '财报': 2, '盈利': 2, '亏损': 2, '营收': 2, '净利润': 2,
    'earnings': 2, 'revenue': 2, 'net income': 2, 'net loss': 2,
    # capital operations
    '并购': 3, '收购': 3, '分拆': 3, '重组': 3,
    'merger': 3, 'acquisition': 3, 'acquire': 3, 'spin-off': 3, 'restructuring': 3,
    # regulation
    '监管': 2, '调查': 2, '罚款': 2, '诉讼': 2,
    'regulator': 2, 'probe': 2, 'investigation': 2, 'fine': 2, 'lawsuit': 2, 'antitrust': 2,
    # management
    'ceo': 1, '高管': 1, '辞职': 1, '任命': 1, 'resign': 1, 'appoint': 1,
    # business progress
    '发布': 1, '推出': 1, '上市': 1, '合作': 1,
    '增长': 1, '下滑': 1, '突破': 1, '创新': 1,
    '订单': 1, '签约': 1, '投资': 1, '融资': 1,
    'launch': 1, 'partnership': 1, 'growth': 1, 'order': 1, 'funding': 1,
    # figures
    '亿元': 1, '亿美元': 1, '百分比': 1, '下降': 1,
    'billion': 1, 'percent': 1,
}

VALUE_NUMBER_RE = re.compile(
    r"\d+(?:\.\d+)?\s*(?:亿|万|百万|千万|%|billion|million|bn\b)", re.I
)
ANALYSIS_KEYWORDS = ['分析', '解读', '认为', '指出', '预计', '预测', '趋势',
                     'analyst', 'analysis', 'expects', 'forecast', 'outlook', 'trend']
AUTHORITY_KEYWORDS = ['财报', '公告', '官方', '证监会', '交易所',
                      'sec filing', 'official', 'stock exchange', 'earnings report']

IMPACT_CRITERIA = [
    (9, '极高影响', '重大战略调整、并购、监管变化、财报大幅超预期/不及预期'),
    (7, '高影响', '重要产品发布、高管变动、市场份额变化、季度财报'),
    (5, '中影响', '业务进展、合作伙伴关系、技术突破、行业趋势'),
    (3, '低影响', '常规运营更新、市场传闻、分析师观点'),
    (1, '极低影响', '日常新闻、公司活动、无关紧要的更新'),
]
VALUE_CRITERIA = [
    (9, '极高价值', '独家信息、深度分析、前瞻性洞察、对投资决策有决定性影响'),
    (7, '高价值', '重要数据、详细分析、行业洞察、对投资有重要参考价值'),
    (5, '中价值', '常规新闻、基本信息、对投资有一定参考价值'),
    (3, '低价值', '表面信息、重复内容、参考价值有限'),
    (1, '极低价值', '无实质内容、营销软文、参考价值很低'),
]
CRITERIA = {'impact': IMPACT_CRITERIA, 'value': VALUE_CRITERIA}

# title-only quick assessment used while fetching
HIGH_IMPACT_WORDS = ['财报', '盈利', '亏损', '营收', '净利润', '增长率', '回购', '拆分',
                     'earnings', 'revenue', 'profit', 'buyback', 'stock split']
MEDIUM_IMPACT_WORDS = ['产品发布', '新品', '技术突破', '合作', '协议', '订单',
                       'launch', 'unveil', 'breakthrough', 'partnership', 'deal', 'order']
PRIORITY_WEIGHTS = {1: 1.5, 2: 1.2, 3: 1.0}

BASIS_RULES = {
    'impact': [
        ('财报数据', ['财报', '盈利', '营收', 'earnings', 'revenue']),
        ('资本运作', ['并购', '收购', '重组', 'merger', 'acquisition']),
        ('监管因素', ['监管', '调查', '政策', 'regulator', 'probe', 'policy']),
        ('产品发布', ['发布', '推出', '上市', 'launch', 'unveil']),
    ],
    'value': [
        ('分析深度', ['分析', '解读', '认为', 'analyst', 'analysis']),
        ('数据丰富', re.compile(r"\d+(?:\.\d+)?\s*(?:亿|万|%)")),
        ('前瞻性', ['趋势', '预测', '预计', 'forecast', 'outlook', 'expects']),
    ],
}
BASIS_DEFAULT = {'impact': '常规运营', 'value': '基本信息'}

# ------------------- Helpers -------------------
def as_text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value if isinstance(value, str) else str(value)

def _news_text(news: Dict[str, Any]) -> str:
    return f"{as_text(news.get('title'))} {as_text(news.get('summary'))}".lower()

def _has_any(text: str, words: List[str]) -> bool:
    return any(w.lower() in text for w in words)

def _matches(text: str, rule) -> bool:
    if isinstance(rule, re.Pattern):
        return bool(rule.search(text))
    return _has_any(text, rule)

def clamp_score(score):
    return max(MIN_SCORE, min(MAX_SCORE, score))

# ------------------- Scores -------------------
def impact_score(news: Dict[str, Any]) -> int:
    text = _news_text(news)
    score = BASE_SCORE
    for keyword, points in IMPACT_KEYWORDS.items():
        if keyword in text:
            score += points
    return clamp_score(score)

def value_score(news: Dict[str, Any]) -> int:
    content = as_text(news.get('deepSummary')) or as_text(news.get('summary'))
    low = content.lower()
    score = BASE_SCORE
    if VALUE_NUMBER_RE.search(content):
        score += 1
    if _has_any(low, ANALYSIS_KEYWORDS):
        score += 1
    if _has_any(low, AUTHORITY_KEYWORDS):
        score += 1
    if len(content) > 500:
        score += 1
    if len(content) > 1000:
        score += 1
    return clamp_score(score)

def overall_score(impact: float, value: float) -> int:
    return int(round((impact + value) / 2))

def score_description(score: float, kind: str = 'impact') -> Dict[str, str]:
    if kind not in CRITERIA:
        raise ValueError(f"unknown score kind: {kind!r}")
    for minimum, level, description in CRITERIA[kind]:
        if score >= minimum:
            return {'level': level, 'description': description}
    return {'level': '未知', 'description': '未评分'}

def scoring_basis(news: Dict[str, Any], kind: str = 'impact') -> List[str]:
    """Reasons shown next to a score so readers can see why it was given."""
    if kind not in BASIS_RULES:
        raise ValueError(f"unknown score kind: {kind!r}")
    text = _news_text(news)
    bases = [label for label, rule in BASIS_RULES[kind] if _matches(text, rule)]
    return bases or [BASIS_DEFAULT[kind]]

def score_news(news: Dict[str, Any]) -> Dict[str, Any]:
    news['impactScore'] = impact_score(news)
    news['valueScore'] = value_score(news)
    news['impactDesc'] = score_description(news['impactScore'], 'impact')
    news['valueDesc'] = score_description(news['valueScore'], 'value')
    return news

# ------------------- Stock impact -------------------
def impact_description(score: float, impact_type: str) -> str:
    if score >= 8:
        return f"对股价有显著{impact_type}影响（高级别），建议重点关注"
    if score >= 5:
        return f"对股价有中等{impact_type}影响，建议关注"
    return "对股价影响较小，可作为参考信息"

def stock_impact(title: str, priority: int = 3) -> Dict[str, Any]:
    low = as_text(title).lower()
    score, level, impact_type = 5, '低', '长期'
    if _has_any(low, HIGH_IMPACT_WORDS):
        score, level, impact_type = 8, '高', '短期'
    elif _has_any(low, MEDIUM_IMPACT_WORDS):
        score, level, impact_type = 7, '中', '中期'
    score = round(clamp_score(score * PRIORITY_WEIGHTS.get(priority, 1.0)), 1)
    return {
        'score': score,
        'type': impact_type,
        'level': level,
        'description': impact_description(score, impact_type),
    }
