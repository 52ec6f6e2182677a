"""
Workflow options read from the Workflow Options worksheet.

The options are collected from their named ranges first and validated in
one step, so a run never sees a partially loaded configuration.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

INDEX_PLACEHOLDER = "{{index}}"


class WorkflowOptions(BaseModel):
    """Per-workbook options for one workflow run."""
    
    performer: str = Field(..., min_length=1, description="Performer name printed on every program")
    update_dates: bool = Field(..., description="Y/N: stamp performance dates into the repertoire table")
    add_to_history: bool = Field(..., description="Y/N: append recitals to the Recital History sheet")
    date_column: int = Field(..., ge=0, description="First performance history column, relative to the repertoire table")
    recital_count: int = Field(..., ge=0, description="Number of recital slots on the planning sheet")
    rep_field: str = Field(..., description="Repertoire range template, ex: Recital{{index}}")
    date_field: str = Field(..., description="Date range template, ex: Recital{{index}}D")
    v12_field: str = Field(..., description="12:00 venue range template")
    v2_field: str = Field(..., description="2:00 venue range template")
    
    class Config:
        frozen = True
    
    @field_validator('performer', 'rep_field', 'date_field', 'v12_field', 'v2_field', mode='before')
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value
    
    @field_validator('update_dates', 'add_to_history', mode='before')
    @classmethod
    def _parse_flag(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        flag = str(value).strip().upper() if value is not None else ''
        if flag == 'Y':
            return True
        if flag == 'N':
            return False
        raise ValueError(f"expected 'Y' or 'N', got {value!r}")
    
    @field_validator('rep_field', 'date_field', 'v12_field', 'v2_field')
    @classmethod
    def _require_placeholder(cls, value: str) -> str:
        if INDEX_PLACEHOLDER not in value:
            raise ValueError(f"template must contain {INDEX_PLACEHOLDER}")
        return value
    
    def field_names(self, index: int) -> Dict[str, str]:
        """
        Resolve the range names of one recital slot.
        
        Args:
            index: 1-based recital slot
        
        Returns:
            {'rep': 'Recital1', 'date': 'Recital1D', 'v12': 'Recital1V12', 'v2': 'Recital1V2'}
        """
        return {
            'rep': self.rep_field.replace(INDEX_PLACEHOLDER, str(index)),
            'date': self.date_field.replace(INDEX_PLACEHOLDER, str(index)),
            'v12': self.v12_field.replace(INDEX_PLACEHOLDER, str(index)),
            'v2': self.v2_field.replace(INDEX_PLACEHOLDER, str(index)),
        }
