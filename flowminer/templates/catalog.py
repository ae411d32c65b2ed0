"""Workflow template catalog.

Ships the built-in library of common browser workflows and reads the
active catalog from the ``pattern_templates`` table. Step keys the
matcher does not evaluate (``intent``, ``action``, ``url_change``, ...)
are kept as descriptive extras and never fail a step.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowminer.core.models import WorkflowTemplate
from flowminer.templates.models import Template

logger = logging.getLogger(__name__)

_CATALOG_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "https://flowminer.dev/templates")

_DEFAULT_CRITERIA: dict[str, Any] = {"min_support": 2, "fuzzy_match": True}

BUILTIN_TEMPLATES: list[dict[str, Any]] = [
    {
        "slug": "email-to-spreadsheet",
        "name": "Email to Spreadsheet",
        "description": "Extract data from emails and add to a spreadsheet",
        "category": "data_transfer",
        "tags": ["email", "spreadsheet", "data_entry", "gmail", "sheets"],
        "steps": [
            {"type": "click", "domain_contains": "mail.google.com", "intent": "communication"},
            {"type": "click", "text_contains": ["copy", "select"]},
            {"type": "nav", "domain_contains": "sheets.google.com"},
            {"type": "click", "text_contains": ["paste", "cell"]},
        ],
    },
    {
        "slug": "daily-dashboard-check",
        "name": "Daily Dashboard Check",
        "description": "Regular monitoring of analytics or admin dashboards",
        "category": "monitoring",
        "tags": ["dashboard", "analytics", "admin", "monitoring"],
        "steps": [
            {"type": "nav", "url_contains": "dashboard"},
            {"type": "click", "text_contains": ["refresh", "reload", "update"]},
            {"type": "idle", "min_dwell_ms": 5000},
        ],
    },
    {
        "slug": "repetitive-form-fill",
        "name": "Repetitive Form Fill",
        "description": "Filling out similar forms with recurring data",
        "category": "data_entry",
        "tags": ["form", "input", "data_entry", "repetitive"],
        "steps": [
            {"type": "click", "tagName": "INPUT"},
            {"type": "click", "tagName": "INPUT"},
            {"type": "click", "tagName": "INPUT"},
            {"type": "form", "action": "submit"},
        ],
    },
    {
        "slug": "download-and-reupload",
        "name": "Download and Re-upload",
        "description": "Download files from one service and upload to another",
        "category": "data_transfer",
        "tags": ["download", "upload", "file_transfer", "export", "import"],
        "steps": [
            {"type": "click", "text_contains": ["download", "export"]},
            {"type": "nav", "url_change": True},
            {"type": "click", "text_contains": ["upload", "import", "attach"]},
        ],
    },
    {
        "slug": "weekly-report-generation",
        "name": "Weekly Report Generation",
        "description": "Generate and send weekly status or analytics reports",
        "category": "reporting",
        "tags": ["report", "email", "weekly", "analytics", "export"],
        "steps": [
            {"type": "nav", "url_contains": "analytics"},
            {"type": "click", "text_contains": ["export", "download", "report"]},
            {"type": "nav", "domain_contains": "mail.google.com"},
            {"type": "click", "text_contains": ["compose", "new"]},
            {"type": "click", "text_contains": ["attach"]},
            {"type": "form", "action": "submit"},
        ],
    },
    {
        "slug": "research-to-document",
        "name": "Research to Document",
        "description": "Collect research from multiple sources and compile into a document",
        "category": "content_creation",
        "tags": ["research", "documentation", "writing", "notes"],
        "steps": [
            {"type": "search", "intent": "research"},
            {"type": "click", "text_contains": ["copy"]},
            {"type": "nav", "domain_contains": "docs.google.com"},
            {"type": "click", "text_contains": ["paste"]},
        ],
    },
    {
        "slug": "cross-platform-posting",
        "name": "Cross-platform Posting",
        "description": "Post the same content across multiple social media platforms",
        "category": "social_media",
        "tags": ["social_media", "posting", "marketing", "content"],
        "steps": [
            {"type": "click", "text_contains": ["post", "compose", "new"]},
            {"type": "form", "action": "submit"},
            {"type": "nav", "domain_change": True},
            {"type": "click", "text_contains": ["post", "compose", "new"]},
            {"type": "form", "action": "submit"},
        ],
    },
    {
        "slug": "bug-report-creation",
        "name": "Bug Report Creation",
        "description": "Document bugs and create tickets in issue tracker",
        "category": "development",
        "tags": ["bug", "issue", "ticket", "jira", "github"],
        "steps": [
            {"type": "click", "text_contains": ["screenshot", "capture"]},
            {"type": "nav", "url_contains": ["jira", "github", "issues"]},
            {"type": "click", "text_contains": ["new", "create", "issue"]},
            {"type": "form", "fieldCount_gt": 3},
            {"type": "click", "text_contains": ["upload", "attach"]},
            {"type": "form", "action": "submit"},
        ],
    },
    {
        "slug": "price-comparison-shopping",
        "name": "Price Comparison Shopping",
        "description": "Compare prices across multiple e-commerce sites",
        "category": "shopping",
        "tags": ["shopping", "comparison", "ecommerce", "price"],
        "steps": [
            {"type": "search", "intent": "comparison"},
            {"type": "click", "url_contains": "product"},
            {"type": "nav", "domain_change": True},
            {"type": "search", "intent": "comparison"},
            {"type": "click", "url_contains": "product"},
        ],
    },
    {
        "slug": "meeting-coordination",
        "name": "Meeting Coordination",
        "description": "Check calendars and send meeting invites",
        "category": "scheduling",
        "tags": ["meeting", "calendar", "scheduling", "coordination"],
        "steps": [
            {"type": "nav", "domain_contains": "calendar.google.com"},
            {"type": "click", "text_contains": ["create", "new"]},
            {"type": "form", "fields_contain": ["title", "time"]},
            {"type": "click", "text_contains": ["add guests", "invite"]},
            {"type": "form", "action": "submit"},
        ],
    },
    {
        "slug": "customer-support-reply",
        "name": "Customer Support Reply",
        "description": "Check support tickets and send templated responses",
        "category": "support",
        "tags": ["support", "customer_service", "tickets", "help_desk"],
        "steps": [
            {"type": "nav", "url_contains": ["support", "zendesk", "tickets"]},
            {"type": "click", "url_contains": "ticket"},
            {"type": "click", "text_contains": ["reply", "respond"]},
            {"type": "form", "action": "submit"},
            {"type": "click", "text_contains": ["close", "resolve"]},
        ],
    },
    {
        "slug": "content-publishing-pipeline",
        "name": "Content Publishing Pipeline",
        "description": "Write, review, and publish content to CMS",
        "category": "content_creation",
        "tags": ["publishing", "cms", "wordpress", "blogging", "content"],
        "steps": [
            {"type": "nav", "domain_contains": "docs.google.com"},
            {"type": "click", "text_contains": ["copy"]},
            {"type": "nav", "url_contains": ["wordpress", "cms", "admin"]},
            {"type": "click", "text_contains": ["new post", "create"]},
            {"type": "click", "text_contains": ["paste"]},
            {"type": "click", "text_contains": ["publish", "post"]},
        ],
    },
    {
        "slug": "invoice-download-and-entry",
        "name": "Invoice Download and Entry",
        "description": "Download invoices and enter data into accounting system",
        "category": "accounting",
        "tags": ["invoice", "accounting", "billing", "finance"],
        "steps": [
            {"type": "nav", "domain_contains": "mail.google.com"},
            {"type": "click", "text_contains": ["invoice", "billing"]},
            {"type": "click", "text_contains": ["download", "pdf"]},
            {"type": "nav", "url_contains": ["quickbooks", "accounting"]},
            {"type": "click", "text_contains": ["new", "create", "invoice"]},
            {"type": "form", "action": "submit"},
        ],
    },
    {
        "slug": "code-review-process",
        "name": "Code Review Process",
        "description": "Review pull requests and provide feedback",
        "category": "development",
        "tags": ["code_review", "github", "pull_request", "development"],
        "steps": [
            {"type": "nav", "domain_contains": "github.com"},
            {"type": "click", "url_contains": "pull"},
            {"type": "click", "text_contains": ["files", "changes"]},
            {"type": "click", "text_contains": ["comment", "review"]},
            {"type": "form", "action": "submit"},
            {"type": "click", "text_contains": ["approve", "request changes"]},
        ],
    },
    {
        "slug": "multi-source-data-aggregation",
        "name": "Multi-source Data Aggregation",
        "description": "Collect data from various sources and consolidate",
        "category": "data_transfer",
        "tags": ["data_entry", "aggregation", "spreadsheet", "consolidation"],
        "steps": [
            {"type": "nav", "url_change": True},
            {"type": "click", "text_contains": ["copy", "export"]},
            {"type": "nav", "domain_contains": "sheets.google.com"},
            {"type": "click", "text_contains": ["paste"]},
            {"type": "nav", "url_change": True},
            {"type": "click", "text_contains": ["copy", "export"]},
            {"type": "nav", "domain_contains": "sheets.google.com"},
            {"type": "click", "text_contains": ["paste"]},
        ],
    },
]


def builtin_template_id(slug: str) -> str:
    """Stable id for a built-in template."""
    return str(uuid.uuid5(_CATALOG_NAMESPACE, slug))


def builtin_templates() -> list[Template]:
    """The built-in catalog as ``Template`` values."""
    templates = []
    for entry in BUILTIN_TEMPLATES:
        templates.append(Template.from_dict({
            "id": builtin_template_id(entry["slug"]),
            "name": entry["name"],
            "description": entry["description"],
            "category": entry["category"],
            "tags": entry["tags"],
            "template_pattern": {"sequence": entry["steps"]},
            "match_criteria": entry.get("match_criteria", _DEFAULT_CRITERIA),
            "confidence_threshold": entry.get("confidence_threshold", 0.7),
        }))
    return templates


def template_from_record(record: WorkflowTemplate) -> Template:
    """Convert a ``pattern_templates`` row into a ``Template``."""
    return Template.from_dict({
        "id": record.id,
        "name": record.name,
        "description": record.description,
        "category": record.category,
        "tags": record.tags,
        "template_pattern": record.template_pattern,
        "match_criteria": record.match_criteria,
        "confidence_threshold": record.confidence_threshold,
    })


async def load_active_templates(session: AsyncSession) -> list[Template]:
    """Read the active catalog. Rows that cannot be parsed are logged and skipped."""
    result = await session.execute(
        select(WorkflowTemplate).where(WorkflowTemplate.is_active.is_(True)).order_by(WorkflowTemplate.name)
    )
    templates: list[Template] = []
    for record in result.scalars().all():
        try:
            templates.append(template_from_record(record))
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning("Skipping malformed template %s", record.id, exc_info=True)
    return templates


async def seed_builtin_templates(session: AsyncSession) -> int:
    """Insert built-in templates that are not in the table yet. Returns rows added."""
    result = await session.execute(select(WorkflowTemplate.id))
    existing = {str(template_id) for template_id in result.scalars().all()}

    added = 0
    for template in builtin_templates():
        if template.id in existing:
            continue
        session.add(WorkflowTemplate(
            id=uuid.UUID(template.id),
            name=template.name,
            description=template.description,
            category=template.category,
            template_pattern={"sequence": [step.to_dict() for step in template.steps]},
            match_criteria=template.match_criteria.to_dict(),
            confidence_threshold=template.confidence_threshold,
            tags=list(template.tags),
            is_active=True,
        ))
        added += 1

    if added:
        await session.flush()
    logger.info("Seeded %d built-in templates", added)
    return added
