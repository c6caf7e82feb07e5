"""
Settings Source
===============

Binds a configuration section into ``StoreSettings``.

Keys are matched case-insensitively and without underscores, so
``DatabaseName``, ``databaseName`` and ``database_name`` all bind the same
field. Unknown keys are ignored. Required fields are not checked here.
"""

from typing import Any, Dict, Mapping

from pydantic import ValidationError

from docstore.application.interfaces import IConfigSource
from docstore.core import ConfigurationError
from docstore.domain.value_objects import StoreSettings
from docstore.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _canonical(key: str) -> str:
    return str(key).replace("_", "").casefold()


_FIELD_BY_KEY: Dict[str, str] = {
    _canonical(name): name for name in StoreSettings.model_fields
}


def load_settings(source: IConfigSource, section_name: str) -> StoreSettings:
    """
    Bind ``section_name`` from ``source`` into a settings record.

    Args:
        source: Configuration provider
        section_name: Section path, e.g. ``"Settings"`` or ``"Databases:Orders"``

    Returns:
        StoreSettings: Bound settings, empty fields where the section is silent

    Raises:
        ConfigurationError: A value cannot be coerced to the field's type
    """
    section = source.bind(section_name)
    values = _normalize_keys(section)

    if not section:
        logger.warning(
            f"Configuration section '{section_name}' is empty or missing",
            extra={"section_name": section_name}
        )

    try:
        settings = StoreSettings.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration section '{section_name}' has invalid values",
            {
                "section_name": section_name,
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
                    for err in e.errors()
                ],
            }
        ) from e

    logger.debug(
        "Bound document store settings",
        extra={
            "section_name": section_name,
            "database": settings.database_name,
            "url_count": len(settings.urls),
            "has_certificate": settings.has_certificate,
        }
    )
    return settings


def _normalize_keys(section: Mapping[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key, value in section.items():
        field_name = _FIELD_BY_KEY.get(_canonical(key))
        if field_name is not None:
            values[field_name] = value
    return values
