"""Hypothesis Digest – LLM hypothesis extraction."""

import json
import logging

import requests

logger = logging.getLogger(__name__)


def extract_hypotheses(title, text, api_key, api_url, model,
                       context="an online massage school", language="Russian",
                       timeout=60):
    """Ask the model for business hypotheses about one article.

    Returns a list of raw dicts ({idea, category, ease, potential,
    rationale}); any failure gives an empty list.  Values are not
    validated here.
    """
    if not api_key:
        logger.info("No LLM API key – skipping '%s'.", title)
        return []
    try:
        content = _call_llm(title, text, api_key, api_url, model,
                            context, language, timeout)
    except Exception as exc:
        logger.warning("LLM call failed for '%s': %s", title, exc)
        return []
    return parse_hypotheses(content)


# ── Prompt ───────────────────────────────────────────────────────────────────

def build_prompt(context, language):
    return (
        f"You are a growth consultant for {context}.\n"
        f"Every hypothesis must apply to {context}; if an idea does not, "
        "leave it out entirely.\n"
        "Constraints: no development team, test budget at most $2000, "
        "test duration at most 2 weeks.\n"
        f"Write ONLY in {language}.\n\n"
        'Categories: "Ads", "Funnel", "Product".\n'
        "Respond with ONLY a valid JSON array (no markdown fences) of objects:\n"
        '{"idea": "short, specific to the business", '
        '"category": "Ads|Funnel|Product", "ease": 7, "potential": 9, '
        '"rationale": "how it lowers lead cost or raises LTV/margin"}'
    )


# ── LLM call ─────────────────────────────────────────────────────────────────

def _call_llm(title, text, api_key, api_url, model, context, language, timeout):
    resp = requests.post(
        api_url,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
        json={
            "model": model,
            "messages": [
                {"role": "system", "content": build_prompt(context, language)},
                {"role": "user", "content": f"Title: {title}\nText: {text}"},
            ],
            "temperature": 0.4,
        },
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json()["choices"][0]["message"]["content"]


# ── Output parsing ───────────────────────────────────────────────────────────

def parse_hypotheses(content):
    """Decode the model's answer into a list of dicts.

    Accepts a bare JSON array or an object with a ``hypotheses`` array,
    optionally wrapped in markdown fences.
    """
    content = (content or "").strip()

    # Strip optional markdown fences
    if content.startswith("```"):
        content = content.split("\n", 1)[-1]
        if content.endswith("```"):
            content = content[:-3]
        content = content.strip()

    try:
        data = json.loads(content)
    except ValueError as exc:
        logger.warning("Unparseable LLM output (%s): %.80r", exc, content)
        return []

    if isinstance(data, dict):
        data = data.get("hypotheses", [])
    if not isinstance(data, list):
        logger.warning("LLM output is %s, expected a list", type(data).__name__)
        return []
    return [h for h in data if isinstance(h, dict)]
