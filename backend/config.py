"""
Application configuration using Pydantic Settings.

This module manages all configuration from environment variables. Sheet,
table and range names default to the layout of the recital planning
workbook and can be overridden per deployment.
"""

from functools import lru_cache
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Workbook Configuration
    WORKBOOK_PATH: Optional[str] = None
    
    # Worksheet Names
    REPERTOIRE_SHEET: str = "Repertoire"
    RECITAL_PLANNING_SHEET: str = "Recital Planning"
    RECITAL_HISTORY_SHEET: str = "Recital History"
    WORKFLOW_LOG_SHEET: str = "Workflow Log"
    WORKFLOW_OPTIONS_SHEET: str = "Workflow Options"
    
    # Table Names
    REPERTOIRE_TABLE: str = "RepertoireList"
    WORKFLOW_LOG_TABLE: str = "WorkflowLog"
    
    # Recital order columns on the repertoire table
    FILTER_COLUMNS: List[str] = ["O1", "O2", "O3", "O4"]
    FILTER_VALUE: str = "1"
    
    # Range names on the Workflow Options sheet, keyed by option field
    OPTION_RANGES: Dict[str, str] = {
        "performer": "OpPerformer",          # Performer name
        "update_dates": "OpUpdateDates",     # Y or N
        "add_to_history": "OpAddToHistory",  # Y or N
        "date_column": "OpDateColumn",       # First performance history column of the repertoire table
        "recital_count": "OpRecitalCount",   # Number of recitals on the planning sheet
        "rep_field": "OpRepFieldName",       # Ex: Recital{{index}}
        "date_field": "OpDateFieldName",     # Ex: Recital{{index}}D
        "v12_field": "OpV12FieldName",       # Ex: Recital{{index}}V12
        "v2_field": "OpV2FieldName",         # Ex: Recital{{index}}V2
    }
    
    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "recital_workflow.log"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Create global settings instance
settings = get_settings()
