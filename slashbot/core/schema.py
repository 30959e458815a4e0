from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import ValidationError
from jsonschema.validators import Draft202012Validator

from .errors import SchemaInvalid

SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"


@lru_cache(maxsize=None)
def _validator(schema_path: Path) -> Draft202012Validator:
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


@dataclass(frozen=True)
class SchemaRegistry:
    schemas_base_dir: Path = SCHEMAS_DIR

    def validate(self, document: Any, schema_filename: str) -> None:
        validator = _validator(self.schemas_base_dir / schema_filename)
        try:
            validator.validate(document)
        except ValidationError as e:
            where = "/".join(str(p) for p in e.absolute_path) or "<root>"
            raise SchemaInvalid(code="SCHEMA_INVALID", message=f"{where}: {e.message}") from e
