"""Module Processor Interface

This module defines the abstract base class and data models that every processing
module implements, so the CLI and schedulers can run, validate and inspect them
the same way.
"""

from abc import ABC, abstractmethod
from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Any, Literal
from datetime import datetime


class ProcessingResult(BaseModel):
    """Result data model for module processing operations.

    This model standardizes the return value from all module processing operations,
    providing consistent success/failure reporting, metrics, and error details.
    """

    success: bool = Field(..., description="Whether the processing completed successfully")
    records_processed: int = Field(ge=0, description="Number of records processed")
    records_updated: int = Field(0, ge=0, description="Number of records written back to storage")
    dry_run: bool = Field(False, description="Whether writes were suppressed")
    errors: List[str] = Field(default_factory=list, description="List of error messages if any")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional processing metadata")
    execution_time: float = Field(ge=0.0, description="Processing execution time in seconds")

    def get_summary(self) -> str:
        """Get a one-line human-readable summary."""
        outcome = "succeeded" if self.success else "failed"
        mode = " (dry run)" if self.dry_run else ""
        return (f"Processing {outcome}{mode}: {self.records_processed} processed, "
                f"{self.records_updated} updated, {len(self.errors)} error(s) "
                f"in {self.execution_time:.1f}s")


class ModuleStatus(BaseModel):
    """Status data model for module health and configuration reporting."""

    module_name: str = Field(..., description="Name of the processing module")
    is_configured: bool = Field(..., description="Whether the module is properly configured")
    last_run: Optional[datetime] = Field(None, description="Timestamp of the last successful processing run")
    status: Literal['ready', 'running', 'error', 'disabled'] = Field(..., description="Current module status")
    health_check: bool = Field(..., description="Result of the most recent health check")
    last_error: Optional[str] = Field(None, description="Message of the most recent failure, if any")


class ModuleProcessor(ABC):
    """Abstract base class for all processing modules.

    Concrete modules receive their collaborators through the constructor and
    implement configuration validation, processing and status reporting.
    """

    @abstractmethod
    def validate_configuration(self) -> bool:
        """Validate module-specific configuration.

        Returns:
            bool: True if configuration is valid and complete, False otherwise
        """
        pass

    @abstractmethod
    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Execute module processing logic.

        Args:
            dry_run: If True, perform all processing logic without making actual changes

        Returns:
            ProcessingResult: Standardized result object with success status, metrics, and errors
        """
        pass

    @abstractmethod
    def get_status(self) -> ModuleStatus:
        """Get current module processing status.

        Returns:
            ModuleStatus: Current module status and health information
        """
        pass
