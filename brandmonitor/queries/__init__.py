"""Monitoring query sources."""

from .catalog import (
    GeneratedQuery,
    QueryCatalog,
    QueryGenerationResult,
    curated_queries,
    parse_generated_queries,
    template_queries,
)
from .templates import (
    PROMPT_TEMPLATES,
    PromptTemplate,
    extract_variables,
    industry_templates,
    missing_variables,
    render_template,
)

__all__ = [
    "GeneratedQuery",
    "PROMPT_TEMPLATES",
    "PromptTemplate",
    "QueryCatalog",
    "QueryGenerationResult",
    "curated_queries",
    "extract_variables",
    "industry_templates",
    "missing_variables",
    "parse_generated_queries",
    "render_template",
    "template_queries",
]
