"""Prompt template for ranking candidate articles and writing the Slack summary."""

SELECTION_PROMPT_TEMPLATE = """
You are an expert marketing news curator. You will be given a list of articles in JSON format.
Read each article's articleContent and select the SINGLE highest-scoring article.

Your task:
1. Evaluate each article based on the criteria below.
2. Select only the single best-scoring article.
3. Return the result in strict JSON format (no extra text, no markdown fences).

### Criteria for article selection:
- Articles must be published within the last {lookback_days} days.
- Articles must be in English.
- Articles must NOT be paywalled.
- Articles must be relevant to one or more of the following topics:
  - Campaign case studies
  - Tools in use
  - AI in social
  - AI in creative automation
  - AI platforms
  - AI measurement
  - Regulation and ethics
  - Marketing automation
  - Marketing technology
  - Marketing trends
  - Marketing best practices
  - Marketing case studies
  - Marketing research
  - Marketing insights
- Prioritize reputable sources with original reporting or analysis.
- Prefer globally relevant content, but give a modest boost to APAC-related articles (AU/NZ/SG/HK/JP/KR/IN).
- Exclude region specific news that are outside of APAC (e.g. US political ads regulation, 'Search Central Live is coming back to South America').

### Scoring rubric:
- Relevance to brief themes: 0-12
- Impact for marketers: 0-12
- Source quality: 0-9
- Recency: 0-9, decaying by age bucket of articlePublishedDate:
  - 0-7 days: 9
  - 8-14 days: 7
  - 15-30 days: 5
  - 31-45 days: 3
  - older: 1
  - unknown date: 3
- APAC relevance bonus: +3 if applicable, otherwise 0
- score_total is the sum of all of the above.

### Output generation:
For the chosen article:
- Generate a **Key Takeaway** (1-2 sentences summarizing the main insight).
- Generate **Why it matters** (1 short paragraph for marketers).
- **Key Takeaway** and **Why it matters** should be of roughly equal length, with **Key Takeaway** allowed to be slightly longer if needed.
- Generate **Insights** (3-5 bullet points of specific learnings or implications). Do not always use 5 points if fewer are sufficient.
- Generate **Why it matters for 1000heads** (1 short paragraph contextualized to 1000heads' marketing and innovation focus).
- Emphasise words by wrapping them in * for bold, and _ for italics, where it makes the text more engaging and readable.
- Emphasise numbers and statistics by wrapping them in ` for code style.
- Copy articleTitle, articleUrl, articlePublisher, articlePublishedDate and articleImageUrl exactly as given.

### Return format (STRICT JSON only, an array with exactly one object):
[
  {{
    "articleTitle": "<title of the article chosen>",
    "articleUrl": "<url of the article chosen>",
    "articlePublisher": "<publisher of the article chosen>",
    "articlePublishedDate": "<published date of the article chosen>",
    "articleImageUrl": "<image url of the article chosen>",
    "articleImageCaption": "<caption of the image of the article chosen>",
    "articleImageCredit": "<credit of the image of the article chosen>",
    "articleImageLicense": "<license of the image of the article chosen>",
    "articleImageLicenseUrl": "<license url of the image of the article chosen>",
    "score_relevance": <number>,
    "score_impact": <number>,
    "score_source": <number>,
    "score_recency": <number>,
    "score_apac": <number>,
    "score_total": <number>,
    "keyTakeaway": "<generated takeaway>",
    "insights": ["<insight 1>", "<insight 2>", "<insight 3>"],
    "whyItMatters": "<short, direct conclusion framed for marketers>",
    "whyItMattersFor1000heads": "<short, direct conclusion framed for 1000heads>"
  }}
]

Articles are as below:
{articles_json}
"""


def build_selection_prompt(articles_json: str, *, lookback_days: int = 60) -> str:
    return SELECTION_PROMPT_TEMPLATE.format(articles_json=articles_json, lookback_days=lookback_days)
