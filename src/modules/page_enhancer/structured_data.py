"""Structured data emission: Person, BreadcrumbList and FAQPage JSON-LD.

Builders return plain dicts; the ``inject_*`` methods serialize a record
into a ``<script type="application/ld+json">`` block in the page head.
"""

import json
import logging
from typing import Any, Optional

from src.config import DEFAULT_SETTINGS
from src.modules.page_enhancer.dom import Page

logger = logging.getLogger(__name__)

SCHEMA_CONTEXT = "https://schema.org"
JSON_LD_TYPE = "application/ld+json"

# @type -> (required properties, recommended properties)
_FIELD_RULES: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "Person": (("name",), ("url", "jobTitle", "image", "sameAs")),
    "BreadcrumbList": (("itemListElement",), ()),
    "FAQPage": (("mainEntity",), ()),
}

# Person settings key -> JSON-LD property
_PERSON_PROPERTIES = (
    ("image", "image"),
    ("job_title", "jobTitle"),
    ("description", "description"),
    ("url", "url"),
)


def to_json_ld(schema: dict) -> str:
    """Compact JSON serialization safe to embed inside a script element."""
    text = json.dumps(schema, ensure_ascii=False, separators=(",", ":"))
    return text.replace("</", "<\\/")


def _record(schema_type: str, **properties: Any) -> dict[str, Any]:
    return {"@context": SCHEMA_CONTEXT, "@type": schema_type, **properties}


def _list_item(position: int, crumb: dict) -> dict[str, Any]:
    return {
        "@type": "ListItem",
        "position": position,
        "name": crumb.get("name", ""),
        "item": crumb.get("url", ""),
    }


def _question(pair: dict) -> Optional[dict[str, Any]]:
    question = (pair.get("question") or "").strip()
    answer = (pair.get("answer") or "").strip()
    if not (question and answer):
        return None
    return {
        "@type": "Question",
        "name": question,
        "acceptedAnswer": {"@type": "Answer", "text": answer},
    }


class SchemaGenerator:
    """Generate, validate and inject JSON-LD structured data.

    Usage::

        gen = SchemaGenerator(settings)
        gen.inject_person_schema(page)
        gen.inject_breadcrumb_schema(page)
        gen.inject_faq_schema(page)
    """

    def __init__(self, settings: Optional[dict[str, Any]] = None) -> None:
        settings = settings or DEFAULT_SETTINGS
        self._data: dict[str, Any] = settings.get(
            "structured_data", DEFAULT_SETTINGS["structured_data"]
        )

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def generate_person_schema(
        self,
        name: str,
        image: str = "",
        job_title: str = "",
        description: str = "",
        url: str = "",
        same_as: list[str] | None = None,
        address: dict | None = None,
    ) -> dict:
        """Person record; empty optional properties are omitted."""
        given = {"image": image, "job_title": job_title, "description": description, "url": url}
        schema = _record("Person", name=name)
        schema.update({prop: given[key] for key, prop in _PERSON_PROPERTIES if given[key]})
        if same_as:
            schema["sameAs"] = list(same_as)
        if address:
            schema["address"] = {"@type": "PostalAddress", **address}
        return schema

    def generate_breadcrumb_schema(self, breadcrumbs: list[dict]) -> dict:
        """BreadcrumbList with 1-based positions in the given order."""
        items = [_list_item(pos, crumb) for pos, crumb in enumerate(breadcrumbs, start=1)]
        return _record("BreadcrumbList", itemListElement=items)

    def generate_faq_schema(self, questions: list[dict]) -> dict:
        """FAQPage; pairs missing either the question or the answer are dropped."""
        entities = [q for q in map(_question, questions) if q is not None]
        if len(entities) < len(questions):
            logger.debug("Dropped %d incomplete FAQ entries", len(questions) - len(entities))
        return _record("FAQPage", mainEntity=entities)

    # ------------------------------------------------------------------
    # Configured records
    # ------------------------------------------------------------------

    def person_schema(self) -> dict:
        person = self._data.get("person", {})
        return self.generate_person_schema(
            name=person.get("name", ""),
            image=person.get("image", ""),
            job_title=person.get("job_title", ""),
            description=person.get("description", ""),
            url=person.get("url", ""),
            same_as=person.get("same_as"),
            address=person.get("address"),
        )

    def breadcrumb_schema(self) -> dict:
        return self.generate_breadcrumb_schema(self._data.get("breadcrumbs", []))

    def faq_schema(self) -> dict:
        return self.generate_faq_schema(self._data.get("faqs", []))

    def all_schemas(self) -> dict[str, dict]:
        return {
            "person": self.person_schema(),
            "breadcrumb": self.breadcrumb_schema(),
            "faq": self.faq_schema(),
        }

    # ------------------------------------------------------------------
    # Injection
    # ------------------------------------------------------------------

    def inject_schema(self, page: Page, schema: dict) -> bool:
        """Append *schema* to the page head as a JSON-LD script block.

        Returns False (and leaves the page untouched) when the document
        has no head element.
        """
        head = page.head
        if head is None:
            logger.debug("No <head> element; skipping %s schema", schema.get("@type"))
            return False
        script = page.soup.new_tag("script", attrs={"type": JSON_LD_TYPE})
        script.string = to_json_ld(schema)
        head.append(script)
        return True

    def inject_person_schema(self, page: Page) -> bool:
        return self.inject_schema(page, self.person_schema())

    def inject_breadcrumb_schema(self, page: Page) -> bool:
        return self.inject_schema(page, self.breadcrumb_schema())

    def inject_faq_schema(self, page: Page) -> bool:
        return self.inject_schema(page, self.faq_schema())

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_schema(self, schema: dict) -> dict:
        """Check a record before it is emitted.

        Returns ``{"is_valid", "errors", "warnings", "schema_type"}``.
        Missing recommended properties are warnings only.
        """
        if not isinstance(schema, dict):
            return self._verdict(None, ["Schema must be a dict"], [])

        errors: list[str] = []
        if schema.get("@context") != SCHEMA_CONTEXT:
            errors.append("@context must be " + SCHEMA_CONTEXT)

        schema_type = schema.get("@type") or None
        if schema_type is None:
            errors.append("Missing @type field")
            return self._verdict(None, errors, [])

        required, recommended = _FIELD_RULES.get(schema_type, ((), ()))
        for prop in required:
            if prop not in schema:
                errors.append("Missing required field: " + prop)
            elif not schema[prop]:
                errors.append("Empty required field: " + prop)
        warnings = ["Missing recommended field: " + p for p in recommended if p not in schema]

        errors.extend(self._entry_errors(schema_type, schema))
        try:
            to_json_ld(schema)
        except (TypeError, ValueError) as exc:
            errors.append("Not serializable as JSON: " + str(exc))

        return self._verdict(schema_type, errors, warnings)

    @staticmethod
    def _entry_errors(schema_type: str, schema: dict) -> list[str]:
        errors = []
        if schema_type == "FAQPage":
            for i, entity in enumerate(schema.get("mainEntity") or []):
                label = f"mainEntity[{i}]"
                if entity.get("@type") != "Question":
                    errors.append(label + " is not a Question")
                elif not entity.get("acceptedAnswer", {}).get("text"):
                    errors.append(label + " has no answer text")
        elif schema_type == "BreadcrumbList":
            for expected, item in enumerate(schema.get("itemListElement") or [], start=1):
                if item.get("position") != expected:
                    errors.append(f"itemListElement position {item.get('position')} != {expected}")
        return errors

    @staticmethod
    def _verdict(schema_type: Optional[str], errors: list[str], warnings: list[str]) -> dict:
        if errors:
            logger.debug("%s schema invalid: %s", schema_type, "; ".join(errors))
        return {
            "is_valid": not errors,
            "errors": errors,
            "warnings": warnings,
            "schema_type": schema_type,
        }
