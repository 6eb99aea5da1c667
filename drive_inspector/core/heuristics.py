#!/usr/bin/env python3
"""
Heuristic rule set for free-text storage classification

The keyword lists and vendor/product-family patterns used by the registry,
storage-name and disk-drive classifiers are data, not code: they ship as a
versioned JSON document next to this module and can be replaced by a custom
file (settings key detection.heuristics_path) when new vendors appear.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Iterable

from core.exceptions import ConfigurationError
from core.logger import logger


DEFAULT_RULES_PATH = Path(__file__).parent / "data" / "ssd_heuristics.json"


@dataclass(frozen=True)
class ModelPattern:
    """One vendor/product-family regex; nvme marks NVMe-only product lines"""
    pattern: str
    regex: re.Pattern = field(compare=False, repr=False)
    nvme: bool = False

    @classmethod
    def compile(cls, pattern: str, nvme: bool = False) -> 'ModelPattern':
        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid model pattern {pattern!r}: {e}",
                setting_key='detection.heuristics_path'
            )
        return cls(pattern=pattern, regex=regex, nvme=nvme)

    def matches(self, text: str) -> bool:
        return bool(text) and self.regex.search(text) is not None


def contains_any(text: str, tokens: Iterable[str]) -> Optional[str]:
    """Return the first token found in text (case-insensitive), else None"""
    if not text:
        return None
    folded = text.casefold()
    for token in tokens:
        if token.casefold() in folded:
            return token
    return None


@dataclass(frozen=True)
class HeuristicRules:
    """Immutable, versioned rule set consumed by the heuristic classifiers"""
    version: str
    storage_name_indicators: Tuple[str, ...]
    registry_keywords: Tuple[str, ...]
    registry_vendor_prefixes: Tuple[str, ...]
    model_keywords: Tuple[str, ...]
    model_patterns: Tuple[ModelPattern, ...]
    nvme_family_patterns: Tuple[ModelPattern, ...]
    scsi_nvme_tokens: Tuple[str, ...]

    @classmethod
    def from_dict(cls, data: dict) -> 'HeuristicRules':
        """
        Build a rule set from its JSON document form

        Raises:
            ConfigurationError: If a required section is missing or malformed
        """
        try:
            registry = data.get('registry', {})
            patterns = tuple(
                ModelPattern.compile(entry['pattern'], bool(entry.get('nvme', False)))
                for entry in data['model_patterns']
            )
            return cls(
                version=str(data['version']),
                storage_name_indicators=tuple(data['storage_name_indicators']),
                registry_keywords=tuple(registry.get('keywords', ('SSD', 'NVMe'))),
                registry_vendor_prefixes=tuple(registry.get('vendor_prefixes', ())),
                model_keywords=tuple(data['model_keywords']),
                model_patterns=patterns,
                nvme_family_patterns=tuple(
                    ModelPattern.compile(pattern, nvme=True)
                    for pattern in data.get('nvme_family_patterns', ())
                ),
                scsi_nvme_tokens=tuple(data.get('scsi_nvme_tokens', ('NVMe', 'PCIe'))),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ConfigurationError(
                f"Malformed heuristic rules: {e}",
                setting_key='detection.heuristics_path'
            )

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'HeuristicRules':
        """
        Load a rule set from disk

        Args:
            path: Custom rule file, or None for the bundled rules

        Returns:
            HeuristicRules instance

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        rules_path = Path(path) if path else DEFAULT_RULES_PATH
        try:
            with open(rules_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot load heuristic rules from {rules_path}: {e}",
                setting_key='detection.heuristics_path'
            )

        rules = cls.from_dict(data)
        logger.debug(f"Loaded heuristic rules v{rules.version} from {rules_path.name} "
                     f"({len(rules.model_patterns)} model patterns)")
        return rules

    def matches_nvme_family(self, model: str) -> bool:
        """True if the model carries a known NVMe product-family code (980, PM9xx, SN7xx...)"""
        return any(family.matches(model) for family in self.nvme_family_patterns)

    def is_nvme_model(self, model: str) -> bool:
        """True if the model names NVMe or a known NVMe product family"""
        return contains_any(model, ('NVMe',)) is not None or self.matches_nvme_family(model)
