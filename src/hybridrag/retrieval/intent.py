"""Query intent detection and the per-intent content-type boost tables."""

from __future__ import annotations

import re
from enum import StrEnum


class QueryIntent(StrEnum):
    FILING_METADATA = "filing_metadata"
    BALANCE_SHEET_METRIC = "balance_sheet_metric"
    INCOME_STATEMENT_METRIC = "income_statement_metric"
    CASH_FLOW_METRIC = "cash_flow_metric"
    SEGMENT_ANALYSIS = "segment_analysis"
    GENERAL = "general"


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


# Checked in order; the first intent with a matching pattern wins.
INTENT_PATTERNS: dict[QueryIntent, tuple[re.Pattern[str], ...]] = {
    QueryIntent.FILING_METADATA: _patterns(
        r"\b(securities?\s+registered|exchange\s+listing|trading\s+symbol|ticker|cusip)\b",
        r"\b(auditor|independent\s+accountant|filing\s+date|form\s+(10-[kq]|8-k)|sec\s+filing)\b",
        r"\b(registrant|cover\s+page|exhibit\s+index|signatures?)\b",
        r"\b(debt\s+securities?\s+(registered|listed|traded))\b",
    ),
    QueryIntent.BALANCE_SHEET_METRIC: _patterns(
        r"\b(quick\s+ratio|current\s+ratio|debt[- ]to[- ]equity|working\s+capital)\b",
        r"\b(total\s+(assets?|liabilities?|equity|debt)|book\s+value)\b",
        r"\b(roa|roe|return\s+on\s+(assets?|equity))\b",
        r"\b(accounts?\s+(receivable|payable)|inventory|cash\s+and\s+equivalents?)\b",
        r"\b(balance\s+sheet|financial\s+position)\b",
    ),
    QueryIntent.INCOME_STATEMENT_METRIC: _patterns(
        r"\b(revenue|sales|net\s+income|gross\s+profit|operating\s+income)\b",
        r"\b(eps|earnings\s+per\s+share|diluted\s+eps)\b",
        r"\b(gross\s+margin|operating\s+margin|net\s+margin|profit\s+margin)\b",
        r"\b(income\s+statement|statement\s+of\s+operations?)\b",
        r"\b(cost\s+of\s+(goods\s+sold|revenue|sales)|cogs)\b",
    ),
    QueryIntent.CASH_FLOW_METRIC: _patterns(
        r"\b(capex|capital\s+expenditure|property[,\s]+plant[,\s]+and\s+equipment)\b",
        r"\b(free\s+cash\s+flow|fcf|operating\s+cash\s+flow|cash\s+from\s+operations?)\b",
        r"\b(cash\s+flow\s+statement|statement\s+of\s+cash\s+flows?)\b",
        r"\b(depreciation|amortization|investing\s+activities?|financing\s+activities?)\b",
    ),
    QueryIntent.SEGMENT_ANALYSIS: _patterns(
        r"\b(segment|geographic|regional|by\s+(region|country|product\s+line))\b",
        r"\b(business\s+unit|operating\s+segment|reportable\s+segment)\b",
    ),
}

# intent -> content_type -> multiplier; unlisted types get 1.0
BOOST_MAPS: dict[QueryIntent, dict[str, float]] = {
    QueryIntent.FILING_METADATA: {
        "cover_page": 3.0,
        "header": 2.5,
        "exhibit": 2.0,
        "text": 1.2,
        "table": 0.6,
        "visual": 0.5,
    },
    QueryIntent.BALANCE_SHEET_METRIC: {
        "balance_sheet": 2.5,
        "financial_statement": 2.0,
        "table": 1.8,
        "visual": 1.5,
        "text": 0.9,
    },
    QueryIntent.INCOME_STATEMENT_METRIC: {
        "income_statement": 2.5,
        "financial_statement": 2.0,
        "table": 1.8,
        "visual": 1.5,
        "text": 0.9,
    },
    QueryIntent.CASH_FLOW_METRIC: {
        "cash_flow_statement": 2.5,
        "financial_statement": 2.0,
        "table": 1.8,
        "visual": 1.5,
        "text": 0.9,
    },
    QueryIntent.SEGMENT_ANALYSIS: {
        "segment": 2.0,
        "table": 1.8,
        "visual": 1.5,
        "text": 1.0,
    },
    QueryIntent.GENERAL: {},
}


def detect_query_intent(query: str) -> QueryIntent:
    """Classify ``query``; ``general`` when no pattern matches."""
    for intent, patterns in INTENT_PATTERNS.items():
        if any(pattern.search(query) for pattern in patterns):
            return intent
    return QueryIntent.GENERAL


def boost_factor(intent: QueryIntent, content_type: str | None) -> float:
    """Multiplier for a chunk's content type under ``intent``."""
    key = (content_type or "").lower() or "text"
    return BOOST_MAPS.get(intent, {}).get(key, 1.0)
