"""YAML configuration loading: validator catalogs, rulesets and rule tags."""

import hashlib
import logging
import urllib.parse
import urllib.request
from importlib.resources import files
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from jsonschema import Draft7Validator
from jsonschema import ValidationError as SchemaError
from jsonschema import validate as validate_schema

from .attributes import RuleTag

logger = logging.getLogger(__name__)

# Validator catalog: name -> dotted class path, or {class: ..., **attributes}
VALIDATORS_SCHEMA = {
    "type": "object",
    "required": ["validators"],
    "properties": {
        "validators": {
            "type": "object",
            "additionalProperties": {
                "oneOf": [
                    {"type": "string", "pattern": r"^[A-Za-z_][\w.]*\.[A-Za-z_]\w*$"},
                    {
                        "type": "object",
                        "required": ["class"],
                        "properties": {"class": {"type": "string"}},
                    },
                ]
            },
        }
    },
}

# Ruleset document: the ruleset itself plus optional display labels
RULESET_SCHEMA = {
    "type": "object",
    "required": ["rules"],
    "properties": {
        "rules": {"type": ["object", "array"]},
        "labels": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
    },
}

# Rule tags document: field -> ["rule args", ...], optional scenarios per field
RULE_TAGS_SCHEMA = {
    "type": "object",
    "required": ["fields"],
    "properties": {
        "fields": {
            "type": "object",
            "additionalProperties": {
                "type": "array",
                "items": {"type": "string", "minLength": 1},
            },
        },
        "scenarios": {
            "type": "object",
            "additionalProperties": {
                "type": "array",
                "items": {"type": ["string", "null"]},
            },
        },
    },
}

for _schema in (VALIDATORS_SCHEMA, RULESET_SCHEMA, RULE_TAGS_SCHEMA):
    Draft7Validator.check_schema(_schema)


class ConfigLoader:
    """Loads validation configuration from files or URIs, with caching for remote ones."""

    # Cache directory for remote documents, created on first fetch
    CACHE_DIR = Path.home() / ".cache" / "kb-validation"

    DEFAULT_VALIDATORS = "config/rules.yaml"

    def __init__(self, base_dir: Optional[str] = None, cache_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            base_dir: Directory that relative paths are resolved against
                (defaults to the current working directory)
            cache_dir: Cache directory for http(s) documents
        """
        self.base_dir = Path(base_dir) if base_dir else None
        self.cache_dir = Path(cache_dir) if cache_dir else self.CACHE_DIR

    def load_validators(self, uri: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a validator catalog.

        Args:
            uri: Catalog location; the bundled default catalog when None

        Returns:
            Dict mapping rule name -> dotted class path or config dict
        """
        if uri is None:
            catalog_file = files("kb_validation").joinpath(self.DEFAULT_VALIDATORS)
            with catalog_file.open("r") as f:
                document = yaml.safe_load(f)
            source = f"bundled {self.DEFAULT_VALIDATORS}"
        else:
            document = self._load_config_from_uri(uri)
            source = uri

        self._check(document, VALIDATORS_SCHEMA, "validator catalog", source)
        logger.debug(f"Loaded {len(document['validators'])} validators from {source}")
        return dict(document["validators"])

    def load_ruleset(self, uri: str) -> Tuple[Any, Dict[str, str]]:
        """
        Load a ruleset document.

        Returns:
            Tuple of (rules, labels)
        """
        document = self._load_config_from_uri(uri)
        self._check(document, RULESET_SCHEMA, "ruleset", uri)
        logger.info(f"Loaded ruleset from {uri}")
        return document["rules"], dict(document.get("labels") or {})

    def load_rule_tags(self, uri: str) -> List[Tuple[str, Any, Any]]:
        """
        Load declarative rule tags for AttributesValidator.

        Example document:

            fields:
              amount: ["required", "range 10, 20"]
            scenarios:
              amount: [null, "import"]

        Returns:
            List of (field, RuleTag, scenarios) in document order
        """
        document = self._load_config_from_uri(uri)
        self._check(document, RULE_TAGS_SCHEMA, "rule tags", uri)

        scenarios = document.get("scenarios") or {}
        tags = []
        for field, specs in document["fields"].items():
            field_scenarios = frozenset(scenarios.get(field) or [None])
            for spec in specs:
                tags.append((field, RuleTag.from_doc(spec), field_scenarios))

        logger.info(f"Loaded {len(tags)} rule tags from {uri}")
        return tags

    def _check(self, document: Any, schema: Dict[str, Any], kind: str, source: str) -> None:
        """Validate a document's shape, raising ValueError with the offending path."""
        try:
            validate_schema(instance=document, schema=schema)
        except SchemaError as e:
            path = " -> ".join(str(p) for p in e.path) if e.path else "root"
            raise ValueError(f"Invalid {kind} document {source} at {path}: {e.message}") from e

    def _read_document(self, path: Path) -> Any:
        """Parse one YAML document read as UTF-8."""
        return yaml.safe_load(path.read_text(encoding="utf-8"))

    def _local_path(self, location: str) -> Path:
        """A plain path, joined onto base_dir when relative and base_dir is set."""
        path = Path(location)
        if self.base_dir is not None and not path.is_absolute():
            path = self.base_dir / path
        return path

    def _cache_path(self, uri: str) -> Path:
        """Cache file for a remote document, named after the sha256 of its URI."""
        return self.cache_dir / f"config_{hashlib.sha256(uri.encode()).hexdigest()}.yaml"

    def _load_config_from_uri(self, uri: str) -> Any:
        """
        Read a document from a path or URI.

        A bare path (or one starting with a drive letter, which urlparse
        reports as a one-letter scheme) goes through _local_path(). file://
        URIs are read as-is. http(s) documents are read from the cache when
        a copy exists there; otherwise they are fetched and the copy is kept
        until clear_cache().

        Raises:
            ValueError: For any other scheme
        """
        location = str(uri)
        parsed = urllib.parse.urlparse(location)
        scheme = parsed.scheme

        if len(scheme) <= 1:
            return self._read_document(self._local_path(location))

        if scheme == "file":
            return self._read_document(Path(urllib.parse.unquote(parsed.path)))

        if scheme not in ("http", "https"):
            raise ValueError(f"Unsupported URI scheme: {scheme} in {location}")

        cached = self._cache_path(location)
        if cached.exists():
            logger.debug(f"Using cached copy of {location}")
            return self._read_document(cached)

        content = self._fetch_uri(location)
        cached.parent.mkdir(parents=True, exist_ok=True)
        cached.write_text(content, encoding="utf-8")
        return yaml.safe_load(content)

    def _fetch_uri(self, uri: str) -> str:
        """
        GET a remote document, giving up after 10 seconds.

        Raises:
            RuntimeError: Wrapping any network or decoding failure
        """
        logger.info(f"Fetching {uri}")
        try:
            with urllib.request.urlopen(uri, timeout=10) as response:
                return response.read().decode("utf-8")
        except Exception as e:
            raise RuntimeError(f"Failed to fetch config from {uri}: {e}") from e

    def clear_cache(self) -> None:
        """Remove cached remote documents."""
        if not self.cache_dir.exists():
            return
        for cached in self.cache_dir.glob("config_*.yaml"):
            cached.unlink()
        logger.debug(f"Cleared config cache at {self.cache_dir}")
