import pytest

from news_summary import (
    SEE_ORIGINAL_NOTE,
    assess_long_term_impact,
    assess_short_term_impact,
    build_deep_analysis,
    clean_lines,
    extract_key_data,
    extract_key_information,
    important_info,
    logic_chain,
    strip_boilerplate,
    strip_markup,
    summarize_article,
)

CN_ARTICLE = (
    "<p>来源：新华社。谷歌第三季度营收同比增长15%，超出市场预期。"
    "公司举办了员工运动会，气氛热烈。英伟达发布新一代GPU产品，性能大幅提升。</p>"
)
EN_ARTICLE = (
    "<p>Nvidia reported record revenue of $35 billion for the quarter.</p>\n"
    "<p>The headquarters has a nice lobby with plants.</p>\n"
    "<p>Analysts expect the new Blackwell chip to lift sales further.</p>"
)
PLAIN_CN = (
    "公司今天在总部举办了一年一度的员工运动会，现场气氛非常热烈，员工们积极参与了各种比赛项目，"
    "大家都玩得非常开心，活动在傍晚时分顺利结束，领导向获奖者颁发了纪念品。"
)


# ---------- summarize_article ----------
def test_summary_keeps_keyword_sentences():
    assert summarize_article("谷歌财报", CN_ARTICLE) == (
        "谷歌第三季度营收同比增长15%，超出市场预期。英伟达发布新一代GPU产品，性能大幅提升。"
    )


def test_summary_chinese_sentence_ending_in_digits_gets_chinese_stop():
    content = (
        "<p>谷歌第三季度营收同比增长15%；英伟达发布新一代GPU产品，性能大幅提升。"
        "公司举办了员工运动会，气氛热烈。活动结束后大家合影留念。</p>"
    )
    assert summarize_article("谷歌财报", content) == (
        "谷歌第三季度营收同比增长15%。英伟达发布新一代GPU产品，性能大幅提升。"
    )


def test_summary_mixed_languages_pick_stop_per_sentence():
    content = (
        "Nvidia revenue grew 94% to 35 billion; "
        "英伟达数据中心收入同比增长112%；公司举办了员工运动会，气氛热烈。"
    )
    assert summarize_article("t", content) == (
        "Nvidia revenue grew 94% to 35 billion. 英伟达数据中心收入同比增长112%。"
    )


def test_summary_english_sentences():
    assert summarize_article("Nvidia results", EN_ARTICLE) == (
        "Nvidia reported record revenue of $35 billion for the quarter. "
        "Analysts expect the new Blackwell chip to lift sales further."
    )


def test_summary_without_keywords_returns_cleaned_text():
    assert summarize_article("活动", PLAIN_CN) == PLAIN_CN


def test_summary_error_page_returns_title_with_note():
    page = "<html><body><h1>403 Forbidden</h1>" + "x" * 100 + "</body></html>"
    assert summarize_article("标题", page) == "标题" + SEE_ORIGINAL_NOTE


def test_summary_short_content_returns_title_with_note():
    assert summarize_article("标题", "太短了") == "标题" + SEE_ORIGINAL_NOTE


def test_summary_script_only_content_returns_title():
    page = "<script>" + "var x = 1;" * 20 + "</script>"
    assert summarize_article("标题", page) == "标题"


@pytest.mark.parametrize("content", [None, "", "   ", b""])
def test_summary_empty_content_returns_title(content):
    assert summarize_article("标题", content) == "标题"


@pytest.mark.parametrize("title,content", [
    (None, None),
    (123, b"\xff\xfe\xfd" * 40),
    ("t", "<" * 200),
    ("t", "。" * 200),
    ("t", {"not": "text"}),
])
def test_summary_never_raises(title, content):
    assert isinstance(summarize_article(title, content), str)


# ---------- cleaners ----------
def test_strip_markup_removes_scripts_and_tags():
    html = "<style>p{color:red}</style><p>Hi <i>there</i></p><script>alert(1)</script>"
    assert strip_markup(html) == "Hi there"


def test_strip_boilerplate_removes_markup():
    html = "<div><script>var a=1;</script><p>Hello <b>world</b></p></div>"
    assert strip_boilerplate(html) == "Hello world"


def test_strip_boilerplate_removes_editor_note():
    assert strip_boilerplate("【责任编辑：张三】正文内容") == "正文内容"


def test_strip_boilerplate_removes_attribution_and_handles():
    text = strip_boilerplate("作者：李四。澎湃号报道，营收增长。下载APP阅读")
    assert "作者" not in text
    assert "澎湃号" not in text
    assert "下载APP" not in text
    assert "营收增长" in text


@pytest.mark.parametrize("text", [
    CN_ARTICLE,
    EN_ARTICLE,
    "<<b>script>alert(1)<</b>/script>",
    "【【编辑】】来源：来源：新华社。\n正文",
    "Read more: Read more: advertisement nginx window.foo",
    "  \t\n ",
])
def test_strip_boilerplate_is_idempotent(text):
    once = strip_boilerplate(text)
    assert strip_boilerplate(once) == once


def test_clean_lines_drops_boilerplate_and_duplicates():
    lines = ["Subscribe now", "Revenue rose 10%", "", "Revenue rose 10%", "cookie policy", "x" * 300]
    assert clean_lines(lines) == ["Revenue rose 10%"]


def test_clean_lines_keeps_long_finance_lines():
    long_line = "Quarterly revenue " + "y" * 300
    assert clean_lines([long_line]) == [long_line]


# ---------- title hints ----------
def test_title_hints():
    title = "谷歌财报：营收增长12.5%，利润增长8%"
    assert logic_chain(title) == "数据发布→市场反应→投资建议"
    assert extract_key_data(title) == ["12.5%", "8%"]
    assert important_info(title) == ["增长"]


def test_logic_chain_variants():
    assert logic_chain("New product unveiled") == "产品发布→技术特点→市场影响"
    assert logic_chain("高管变动") == "事件→进展→意义"


def test_extract_key_data_caps_at_three():
    assert extract_key_data("1% 2% 3% 4%") == ["1%", "2%", "3%"]


# ---------- deep analysis ----------
def test_extract_key_information():
    info = extract_key_information("公司宣布营收增长20%，达到300亿元。研发投入持续加大，技术创新成果显著。")
    assert info["important_data"] == ["20%", "300亿元"]
    assert len(info["core_points"]) == 2
    assert info["investment_focus"] == "技术创新能力"
    assert info["opportunities"] == "技术突破可能带来长期竞争优势"
    assert info["risks"] == ""


def test_extract_key_information_empty():
    info = extract_key_information(None)
    assert info["core_points"] == []
    assert info["important_data"] == []


def test_short_and_long_term_impact():
    earnings = {"title": "腾讯发布财报", "summary": ""}
    assert assess_short_term_impact(earnings) == "直接影响股价，财报季关键信息"
    assert assess_long_term_impact(earnings) == "对长期价值影响需结合公司基本面综合判断"

    regulatory = {"title": "Tesla faces regulator probe", "summary": "new policy"}
    assert assess_short_term_impact(regulatory) == "可能带来负面情绪，影响短期股价"
    assert assess_long_term_impact(regulatory) == "可能改变行业格局，影响长期经营环境"


def test_build_deep_analysis_defaults():
    analysis = build_deep_analysis({"title": "活动", "summary": "公司举办年会"})
    assert analysis["source"] == "未知来源"
    assert analysis["core_points"] == ["公司举办年会..."]
    assert analysis["investment_focus"] == "公司基本面变化"
    assert analysis["risks"] == "市场波动风险"
    assert analysis["opportunities"] == "需结合市场环境判断"


def test_build_deep_analysis_prefers_deep_summary():
    news = {"title": "t", "summary": "short", "deepSummary": "营收下降10%，公司表示将调整策略。", "source": "Reuters"}
    analysis = build_deep_analysis(news)
    assert analysis["summary"] == news["deepSummary"]
    assert analysis["source"] == "Reuters"
    assert analysis["risks"] == "业绩下滑可能影响股价"
