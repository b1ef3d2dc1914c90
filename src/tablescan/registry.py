"""Detector registry for loading and managing sensitive data patterns."""

import re
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import yaml
import jsonschema

from tablescan.models import Detector, Category, Examples

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent
DEFAULT_PATTERN_FILES = [PACKAGE_DIR / "patterns" / "uk.yml"]
SCHEMA_PATH = PACKAGE_DIR / "schemas" / "detector-schema.json"

_FLAGS = {
    "IGNORECASE": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "DOTALL": re.DOTALL,
    "UNICODE": re.UNICODE,
    "VERBOSE": re.VERBOSE,
}


class DetectorRegistry:
    """
    Ordered collection of detectors.

    Registration order is evaluation order: when a value matches several
    detectors, the one registered first wins.
    """

    def __init__(self, detectors: Optional[Iterable[Detector]] = None) -> None:
        """Initialize registry, optionally with detectors in priority order."""
        self._detectors: list[Detector] = []
        self._by_code: dict[str, Detector] = {}
        for detector in detectors or []:
            self.add(detector)

    def add(self, detector: Detector) -> None:
        """Append a detector at the lowest priority."""
        if detector.code in self._by_code:
            raise ValueError(f"Detector code already registered: {detector.code}")

        self._detectors.append(detector)
        self._by_code[detector.code] = detector

    def get(self, code: str) -> Optional[Detector]:
        """Get detector by code."""
        return self._by_code.get(code)

    @property
    def codes(self) -> list[str]:
        """Detector codes in priority order."""
        return [d.code for d in self._detectors]

    @property
    def namespaces(self) -> list[str]:
        """Distinct namespaces in order of first appearance."""
        seen: list[str] = []
        for detector in self._detectors:
            if detector.namespace not in seen:
                seen.append(detector.namespace)
        return seen

    def select(
        self,
        codes: Optional[Iterable[str]] = None,
        namespaces: Optional[Iterable[str]] = None,
    ) -> "DetectorRegistry":
        """
        Return a new registry restricted to the given codes and/or namespaces.

        Relative order of the kept detectors is unchanged.

        Raises:
            ValueError: If a requested code is not registered
        """
        wanted_codes = set(codes) if codes else None
        wanted_namespaces = set(namespaces) if namespaces else None

        if wanted_codes:
            unknown = wanted_codes - set(self._by_code)
            if unknown:
                raise ValueError(f"Unknown detector codes: {', '.join(sorted(unknown))}")

        return DetectorRegistry(
            d
            for d in self._detectors
            if (wanted_codes is None or d.code in wanted_codes)
            and (wanted_namespaces is None or d.namespace in wanted_namespaces)
        )

    def __iter__(self) -> Iterator[Detector]:
        return iter(self._detectors)

    def __len__(self) -> int:
        """Return number of detectors."""
        return len(self._detectors)

    def __repr__(self) -> str:
        """String representation."""
        return f"DetectorRegistry(detectors={len(self)}, namespaces={self.namespaces})"


def load_registry(
    paths: Optional[list[str]] = None,
    validate_schema: bool = True,
    validate_examples: bool = True,
) -> DetectorRegistry:
    """
    Load detectors from YAML files into a registry.

    Files are read in the given order and detectors keep their order within
    each file, so the list of paths also sets detector priority.

    Args:
        paths: List of file paths to load. If None, loads the bundled UK set.
        validate_schema: Whether to validate against JSON schema
        validate_examples: Whether to validate examples against detectors

    Returns:
        DetectorRegistry with loaded detectors

    Raises:
        ValueError: If detector validation fails or a code is duplicated
    """
    registry = DetectorRegistry()

    if paths is None:
        paths = [str(p) for p in DEFAULT_PATTERN_FILES]

    for path_str in paths:
        path = Path(path_str)
        if not path.exists():
            logger.warning(f"Detector file not found: {path}")
            continue

        logger.info(f"Loading detectors from {path}")
        data = _load_yaml_file(path)

        if validate_schema:
            _validate_schema(data)

        for detector in _parse_detector_file(data):
            if validate_examples and detector.examples:
                _validate_examples(detector)
            registry.add(detector)

    logger.info(f"Loaded {len(registry)} detectors from {len(registry.namespaces)} namespaces")
    return registry


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _validate_schema(data: dict[str, Any]) -> None:
    """Validate detector data against JSON schema."""
    if not SCHEMA_PATH.exists():
        logger.warning("Detector schema not found, skipping validation")
        return

    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema = yaml.safe_load(f)

    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ValueError(f"Detector schema validation failed: {e.message}") from e


def _parse_detector_file(data: dict[str, Any]) -> list[Detector]:
    """Parse detector file data into Detector objects."""
    namespace = data["namespace"]
    return [_compile_detector(namespace, d) for d in data.get("detectors", [])]


def _compile_detector(namespace: str, data: dict[str, Any]) -> Detector:
    """Compile a single detector definition."""
    code = data["code"]
    pattern_str = data["pattern"]
    flag_names = data.get("flags", [])

    flags = 0
    for flag_name in flag_names:
        flags |= _FLAGS.get(flag_name, 0)

    try:
        compiled = re.compile(pattern_str, flags)
    except re.error as e:
        raise ValueError(f"Failed to compile detector {code}: {e}") from e

    examples = None
    if "examples" in data:
        examples = Examples(
            match=tuple(data["examples"].get("match", [])),
            nomatch=tuple(data["examples"].get("nomatch", [])),
        )

    return Detector(
        code=code,
        message=data["message"],
        namespace=namespace,
        category=Category(data.get("category", "other")),
        pattern=pattern_str,
        compiled=compiled,
        anchored=data.get("anchored", False),
        description=data.get("description", ""),
        flags=tuple(flag_names),
        examples=examples,
    )


def _validate_examples(detector: Detector) -> None:
    """Validate detector examples match/nomatch expectations."""
    if not detector.examples:
        return

    errors = []

    for example in detector.examples.match:
        if not detector.matches(example):
            errors.append(f"Example should match but doesn't: '{example}'")

    for example in detector.examples.nomatch:
        if detector.matches(example):
            errors.append(f"Example should NOT match but does: '{example}'")

    if errors:
        error_msg = f"Detector {detector.code} example validation failed:\n" + "\n".join(errors)
        raise ValueError(error_msg)

    logger.debug(f"Detector {detector.code} examples validated successfully")
