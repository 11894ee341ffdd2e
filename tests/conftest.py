import pytest


@pytest.fixture
def axe_raw():
    return {
        "violations": [{
            "id": "color-contrast",
            "impact": "serious",
            "description": "Ensures the contrast between foreground and background colors meets WCAG 2 AA",
            "help": "Elements must meet minimum color contrast ratio thresholds",
            "helpUrl": "https://dequeuniversity.com/rules/axe/4.11/color-contrast",
            "tags": ["cat.color", "wcag2aa", "wcag143"],
            "nodes": [
                {
                    "target": ["#main", "div.links", "a.icon"],
                    "html": '<a class="icon" href="/x">Read more</a>',
                    "failureSummary": "Fix any of the following:\n  Element has insufficient color contrast of 2.1",
                },
                {
                    "target": [".footer a"],
                    "html": "<a>" + "x" * 300 + "</a>",
                },
            ],
        }],
        "passes": [{
            "id": "document-title",
            "impact": None,
            "description": "Ensures each HTML document contains a non-empty <title> element",
            "helpUrl": "https://dequeuniversity.com/rules/axe/4.11/document-title",
            "tags": ["cat.text-alternatives", "wcag2a", "wcag242"],
            "nodes": [{"target": ["html"], "html": "<html lang=\"en\">"}],
        }],
        "incomplete": [],
    }


@pytest.fixture
def pa11y_raw():
    return {"issues": [
        {
            "code": "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail",
            "type": "error",
            "message": "This element has insufficient contrast at this conformance level.",
            "selector": "#main>div.links>a.icon",
            "context": '<a class="icon" href="/x">Read more</a>',
        },
        {
            "code": "WCAG2AA.Principle1.Guideline1_1.1_1_1.H37",
            "type": "warning",
            "message": "Img element missing an alt attribute.",
            "selector": None,
            "context": None,
        },
        {
            "code": "WCAG2AA.Principle2.Guideline2_4.2_4_2.H25.2",
            "type": "notice",
            "message": "Check that the title element describes the document.",
            "selector": "html > head > title",
            "context": "<title>Home</title>",
        },
    ]}


@pytest.fixture
def lighthouse_raw():
    return {"lhr": {
        "categories": {
            "performance": {"score": 0.91},
            "accessibility": {
                "score": 0.786,
                "auditRefs": [
                    {"id": "color-contrast"},
                    {"id": "document-title"},
                    {"id": "video-caption"},
                    {"id": "logical-tab-order"},
                    {"id": "accesskeys"},
                ],
            },
            "best-practices": {"score": 1},
            "seo": {"score": 0.5},
        },
        "audits": {
            "color-contrast": {
                "id": "color-contrast",
                "title": "Background and foreground colors do not have a sufficient contrast ratio.",
                "description": "Low-contrast text is difficult to read. "
                               "[Learn more](https://dequeuniversity.com/rules/axe/4.10/color-contrast).",
                "score": 0,
                "scoreDisplayMode": "binary",
                "details": {"type": "table", "items": [
                    {"node": {"selector": "#main > div.links > a.icon", "snippet": '<a class="icon" href="/x">'}},
                ]},
            },
            "document-title": {
                "id": "document-title",
                "title": "Document has a `<title>` element",
                "description": "The title gives screen reader users an overview of the page.",
                "score": 1,
                "scoreDisplayMode": "binary",
                "details": {"type": "table", "items": []},
            },
            "video-caption": {
                "id": "video-caption",
                "title": "`<video>` elements contain a `<track>` element",
                "score": None,
                "scoreDisplayMode": "notApplicable",
            },
            "logical-tab-order": {
                "id": "logical-tab-order",
                "title": "The page has a logical tab order",
                "description": "Tabbing through the page follows the visual layout.",
                "score": None,
                "scoreDisplayMode": "manual",
            },
            "accesskeys": {
                "id": "accesskeys",
                "title": "`[accesskey]` values are unique",
                "description": "Access keys let users quickly focus a part of the page.",
                "score": None,
                "scoreDisplayMode": "informative",
            },
        },
    }}


@pytest.fixture
def ibm_raw():
    return {"report": {"results": [
        {"ruleId": "WCAG20_Text_ColorContrast", "value": ["VIOLATION", "FAIL"],
         "path": {"dom": "/html[1]/body[1]/main[1]/a[1]"}, "message": "Text contrast is insufficient",
         "snippet": '<a class="icon">'},
        {"ruleId": "WCAG20_Text_ColorContrast", "value": ["VIOLATION", "FAIL"],
         "path": {"dom": "/html[1]/body[1]/main[1]/a[2]"}, "message": "Text contrast is insufficient",
         "snippet": "<a>"},
        {"ruleId": "WCAG20_Html_HasLang", "value": ["VIOLATION", "PASS"],
         "path": {"dom": "/html[1]"}, "message": "Page language detected"},
        {"ruleId": "target_size_minimum", "value": ["VIOLATION", "POTENTIAL"],
         "path": {"dom": "/html[1]/body[1]/button[1]"}, "message": "Target may be too small"},
    ]}}


@pytest.fixture
def alfa_raw():
    return {"outcomes": [
        {"outcome": "failed",
         "rule": {"uri": "https://alfa.siteimprove.com/rules/sia-r69",
                  "requirements": [{"uri": "https://www.w3.org/TR/WCAG/#contrast-minimum"},
                                   {"uri": "https://www.w3.org/TR/WCAG/#contrast-enhanced"}]},
         "target": {"path": "/html/body/main/a", "html": '<a class="icon">'}},
        {"outcome": "inapplicable", "rule": {"uri": "https://alfa.siteimprove.com/rules/sia-r1"}},
        {"outcome": "passed",
         "rule": {"uri": "https://alfa.siteimprove.com/rules/sia-r2",
                  "requirements": [{"uri": "https://www.w3.org/TR/WCAG/#non-text-content"}]},
         "target": {"path": "/html/body/img"}},
    ]}


@pytest.fixture
def qualweb_raw():
    return {"https://example.com": {"modules": {"act-rules": {"assertions": {
        "QW-ACT-R37": {
            "code": "QW-ACT-R37",
            "name": "Text has minimum contrast",
            "description": "This rule checks that the highest possible contrast of every text character meets the minimum.",
            "metadata": {"success-criteria": [{"name": "1.4.3 Contrast (Minimum)", "level": "AA"}]},
            "results": [
                {"verdict": "failed", "pointer": "main > a.icon", "htmlCode": '<a class="icon">'},
                {"verdict": "passed", "pointer": "p:nth-of-type(1)", "htmlCode": "<p>"},
                {"verdict": "inapplicable"},
            ],
        },
    }}}}}


@pytest.fixture
def wave_raw():
    return {
        "status": {"success": True},
        "categories": {
            "error": {"count": 1, "items": {
                "alt_missing": {"id": "alt_missing", "description": "Missing alternative text", "count": 1,
                                "xpaths": ["/HTML/BODY/IMG[1]"]},
            }},
            "contrast": {"count": 3, "items": {
                "contrast": {"id": "contrast", "description": "Very low contrast", "count": 3},
            }},
            "alert": {"count": 0, "items": {}},
            "feature": {"count": 1, "items": {
                "alt": {"id": "alt", "description": "Alternative text", "count": 1, "xpaths": ["/HTML/BODY/IMG[2]"]},
            }},
        },
        "statistics": {"creditsremaining": 97},
    }


@pytest.fixture
def custom_raw():
    return [
        {"ruleId": "custom-long-alt", "description": "alt text is 140 characters long", "impact": "minor",
         "wcagCriteria": ["1.1.1"], "helpUrl": "https://www.w3.org/WAI/WCAG21/Understanding/non-text-content.html",
         "selector": "img.hero", "html": '<img class="hero" alt="...">'},
        {"ruleId": "custom-long-alt", "description": "alt text is 120 characters long", "impact": "moderate",
         "wcagCriteria": ["1.1.1"], "selector": "img.team", "html": '<img class="team" alt="...">'},
        {"ruleId": "custom-heading-skip", "description": "Heading level skips from h2 to h4", "impact": "moderate",
         "wcagCriteria": ["1.3.1", "2.4.6"], "selector": "h4", "html": "<h4>Team</h4>"},
    ]
