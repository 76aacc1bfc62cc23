"""
Companies to monitor, loaded from YAML (or JSON) through OmegaConf.

Example companies.yaml:

    companies:
      - name: Acme
        career_page_url: https://acme.example/careers
        filters:
          roles: [engineer, scientist]

A bare top-level list and the camelCase keys of older companies.json files
(careerPageUrl) are accepted as well.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from omegaconf import MISSING, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from tailor.contexts.intake.logger import _log_warning
from tailor.contexts.intake.scraper import validate_url
from tailor.exceptions import ConfigurationError


@dataclass
class CompanyFilters:
    roles: List[str] = field(default_factory=list)
    # Not applied: locations cannot be read reliably from career page markdown
    locations: List[str] = field(default_factory=list)


@dataclass
class CompanyConfig:
    name: str = MISSING
    career_page_url: str = MISSING
    filters: CompanyFilters = field(default_factory=CompanyFilters)


@dataclass
class CompaniesFile:
    companies: List[CompanyConfig] = field(default_factory=list)


_KEY_ALIASES = {"careerPageUrl": "career_page_url"}


def _normalize(raw) -> dict:
    if isinstance(raw, list):
        raw = {"companies": raw}
    companies = []
    for item in raw.get("companies") or []:
        if isinstance(item, dict):
            item = {_KEY_ALIASES.get(key, key): value for key, value in item.items()}
            if item.get("filters") is None:
                item.pop("filters", None)
        companies.append(item)
    return {**raw, "companies": companies}


def load_companies(path: Path) -> list[CompanyConfig]:
    """
    Load and validate the companies file.

    Returns an empty list (with a warning) if the file does not exist.

    Raises:
        ConfigurationError: If the file is malformed or a career page URL is invalid
    """
    path = Path(path)
    if not path.exists():
        _log_warning(f"No companies file at {path}")
        return []

    try:
        loaded = OmegaConf.load(path)
        raw = OmegaConf.to_container(loaded, resolve=True)
        if not isinstance(raw, (dict, list)):
            raise ConfigurationError(f"Invalid companies file {path}: expected a mapping or list")
        merged = OmegaConf.merge(OmegaConf.structured(CompaniesFile), _normalize(raw))
        parsed: CompaniesFile = OmegaConf.to_object(merged)
    except OmegaConfBaseException as e:
        raise ConfigurationError(f"Invalid companies file {path}: {e}") from e

    for company in parsed.companies:
        try:
            validate_url(company.career_page_url)
        except ValueError as e:
            raise ConfigurationError(f"Invalid companies file {path} ({company.name}): {e}") from e
    return parsed.companies
