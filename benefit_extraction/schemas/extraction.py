"""Schemas for extraction requests and model output."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BenefitType(str, Enum):
    """Benefit categories the extraction prompt asks for."""

    RENTAL = "rental"
    TRIP_PROTECTION = "tripProtection"
    BAGGAGE_PROTECTION = "baggageProtection"
    PURCHASE_PROTECTION = "purchaseProtection"
    EXTENDED_WARRANTY = "extendedWarranty"
    CELL_PHONE_PROTECTION = "cellPhoneProtection"
    ROADSIDE_ASSISTANCE = "roadsideAssistance"
    EMERGENCY_ASSISTANCE = "emergencyAssistance"
    RETURN_PROTECTION = "returnProtection"
    TRAVEL_PERKS = "travelPerks"


BENEFIT_TYPES = frozenset(item.value for item in BenefitType)


class ExtractionOutput(BaseModel):
    """Top-level JSON document returned by the model.

    Confidence and excerpt maps are kept loosely typed; the confidence
    evaluator decides how to treat missing or non-numeric values.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    card_name: Optional[str] = Field(default=None, alias="cardName")
    issuer: Optional[str] = None
    annual_fee: Optional[Any] = Field(default=None, alias="annualFee")
    benefits: Optional[Dict[str, Any]] = Field(default_factory=dict)
    confidence: Optional[Dict[str, Any]] = Field(default_factory=dict)
    source_excerpts: Optional[Dict[str, Any]] = Field(default_factory=dict, alias="sourceExcerpts")

    @field_validator("benefits", "confidence", "source_excerpts", mode="before")
    @classmethod
    def null_map_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class ExtractRequest(BaseModel):
    """Body of ``POST /extract``."""

    model_config = ConfigDict(populate_by_name=True)

    document_id: Optional[str] = Field(default=None, alias="documentId")


class ExtractAcceptedResponse(BaseModel):
    """Acknowledgement returned before the background job runs."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Extraction started"
    document_id: UUID = Field(..., alias="documentId")
    job_id: UUID = Field(..., alias="jobId")


class HealthConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    llm_configured: bool = Field(..., alias="llmConfigured")
    storage_configured: bool = Field(..., alias="storageConfigured")
    secret_configured: bool = Field(..., alias="secretConfigured")


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="Health check status")
    version: str = Field(..., description="Running application version")
    timestamp: datetime = Field(..., description="Server time of the check")
    config: HealthConfig
