"""Curated monitoring prompt templates, grouped by industry."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

_VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class PromptTemplate:
    id: str
    name: str
    category: str
    prompt: str
    description: str
    industry: Optional[str] = None

    @property
    def variables(self) -> List[str]:
        return extract_variables(self.prompt)


PROMPT_TEMPLATES: Tuple[PromptTemplate, ...] = (
    PromptTemplate("generic-best-in-category", "Best in Category", "Generic",
                   "What are the best {{industry}} companies?", "General best-in-category query"),
    PromptTemplate("generic-recommendations", "Recommendations", "Generic",
                   "Can you recommend {{product_type}} for {{use_case}}?", "Product recommendation query"),
    PromptTemplate("generic-alternatives", "Alternatives to Brand", "Generic",
                   "What are alternatives to {{brand_name}}?", "Find competitive alternatives"),
    PromptTemplate("generic-comparison", "Brand Comparison", "Generic",
                   "Compare {{brand_name}} vs {{competitor_name}} for {{category}}", "Direct competitor comparison"),
    PromptTemplate("generic-features", "Feature Inquiry", "Generic",
                   "Which {{product_type}} has the best {{feature}}?", "Feature-based search"),
    PromptTemplate("saas-best-tools", "Best SaaS Tools", "SaaS",
                   "What are the best {{tool_category}} tools for {{team_size}} teams?",
                   "SaaS tool recommendations by team size", industry="SaaS"),
    PromptTemplate("saas-use-case", "SaaS by Use Case", "SaaS",
                   "Best {{software_type}} for {{use_case}}", "Use case specific SaaS search", industry="SaaS"),
    PromptTemplate("saas-integration", "Integration Compatibility", "SaaS",
                   "Which {{software_type}} integrates with {{platform}}?", "Integration-focused query", industry="SaaS"),
    PromptTemplate("saas-pricing", "Affordable Options", "SaaS",
                   "Most affordable {{software_type}} for {{budget_range}}", "Price-conscious search", industry="SaaS"),
    PromptTemplate("ecommerce-product-search", "Product Search", "E-commerce",
                   "Where can I buy {{product_name}} online?", "Product availability query", industry="E-commerce"),
    PromptTemplate("ecommerce-best-price", "Best Price", "E-commerce",
                   "Best deals on {{product_category}} under {{price_point}}", "Price comparison query",
                   industry="E-commerce"),
    PromptTemplate("ecommerce-reviews", "Product Reviews", "E-commerce",
                   "Reviews for {{brand_name}} {{product_type}}", "Review and reputation query", industry="E-commerce"),
    PromptTemplate("healthcare-provider", "Provider Search", "Healthcare",
                   "Best {{specialty}} providers in {{location}}", "Healthcare provider search", industry="Healthcare"),
    PromptTemplate("healthcare-treatment", "Treatment Options", "Healthcare",
                   "What are the best treatments for {{condition}}?", "Treatment research query", industry="Healthcare"),
    PromptTemplate("finance-services", "Financial Services", "Finance",
                   "Best {{service_type}} for {{customer_segment}}", "Financial service search", industry="Finance"),
    PromptTemplate("finance-comparison", "Rate Comparison", "Finance",
                   "Compare {{product_type}} interest rates and fees", "Rate and fee comparison", industry="Finance"),
    PromptTemplate("realestate-market", "Neighborhood Search", "Real Estate",
                   "Best neighborhoods in {{city}} for {{buyer_type}}", "Location research query",
                   industry="Real Estate"),
    PromptTemplate("services-provider", "Service Provider", "Professional Services",
                   "Top rated {{service_type}} in {{location}}", "Local service provider search",
                   industry="Professional Services"),
    PromptTemplate("education-courses", "Course Search", "Education",
                   "Best {{subject}} courses for {{skill_level}}", "Course recommendation query", industry="Education"),
    PromptTemplate("education-platform", "Learning Platforms", "Education",
                   "Best online learning platforms for {{topic}}", "Platform comparison query", industry="Education"),
    PromptTemplate("travel-destination", "Destination Ideas", "Travel",
                   "Best {{destination_type}} for {{traveler_type}} in {{season}}", "Destination research query",
                   industry="Travel"),
    PromptTemplate("travel-booking", "Booking Platforms", "Travel",
                   "Best platforms to book {{service_type}} in {{location}}", "Booking platform search",
                   industry="Travel"),
    PromptTemplate("marketing-agency", "Agency Search", "Marketing",
                   "Top {{service_type}} agencies for {{industry}}", "Agency recommendation query",
                   industry="Marketing"),
    PromptTemplate("marketing-tools", "Marketing Tools", "Marketing",
                   "Best {{tool_type}} tools for {{use_case}}", "Marketing tool search", industry="Marketing"),
)


def extract_variables(prompt: str) -> List[str]:
    return _VARIABLE_PATTERN.findall(prompt)


def render_template(prompt: str, variables: Mapping[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders; unknown placeholders are left as-is."""

    def _replace(match: "re.Match[str]") -> str:
        value = variables.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return _VARIABLE_PATTERN.sub(_replace, prompt)


def missing_variables(prompt: str, variables: Mapping[str, str]) -> List[str]:
    return [name for name in extract_variables(prompt) if not variables.get(name)]


def industry_templates(industry: Optional[str] = None) -> List[PromptTemplate]:
    """Generic templates plus those written for ``industry`` (case-insensitive)."""
    wanted = (industry or "").strip().lower()
    return [
        template
        for template in PROMPT_TEMPLATES
        if template.industry is None or (wanted and template.industry.lower() == wanted)
    ]


__all__ = [
    "PROMPT_TEMPLATES",
    "PromptTemplate",
    "extract_variables",
    "industry_templates",
    "missing_variables",
    "render_template",
]
