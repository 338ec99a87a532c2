from pydantic import BaseModel, ConfigDict, ValidationError
from typing import Any, Dict, Mapping, Optional


class BaseGolfModel(BaseModel):
    """Shared configuration for scorecard models. Assignments are validated."""
    model_config = ConfigDict(validate_assignment=True)

    def update_field(self, field_name: str, value: Any) -> Optional[str]:
        """Apply one reviewer correction. Returns the validation message if rejected."""
        if field_name not in type(self).model_fields:
            return f"Unknown field: {field_name}"
        try:
            setattr(self, field_name, value)
            return None
        except ValidationError as e:
            return e.errors()[0]['msg']

    def apply_corrections(self, corrections: Mapping[str, Any]) -> Dict[str, str]:
        """Apply every correction that validates; rejected ones are returned by field."""
        rejected = {}
        for field_name, value in corrections.items():
            error = self.update_field(field_name, value)
            if error:
                rejected[field_name] = error
        return rejected

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe dict with absent fields omitted (stored as JSONB blobs)."""
        return self.model_dump(mode="json", exclude_none=True)
