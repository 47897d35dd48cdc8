import logging
from datetime import datetime
from typing import List, Optional, Protocol

from pydantic import BaseModel, Field

from claim_encoder import ClaimEncoder
from claim_models import Claim837PInput, ControlNumbers, ValidationFinding

logger = logging.getLogger(__name__)

STATUS_READY = "ready"
STATUS_SUBMITTED = "submitted"
STATUS_SUBMISSION_FAILED = "submission_failed"
STATUS_VALIDATION_FAILED = "validation_failed"


class ClaimSubmitRequest(BaseModel):
    claim_id: str
    submit_via_transport: bool = False


class TransportResult(BaseModel):
    success: bool
    remote_file_path: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    error: Optional[str] = None


class ClaimSubmitResponse(BaseModel):
    success: bool
    edi_content: Optional[str] = None
    edi_content_formatted: Optional[str] = None
    control_numbers: Optional[ControlNumbers] = None
    segment_count: int = 0
    file_name: Optional[str] = None
    transport_result: Optional[TransportResult] = None
    claim_status: Optional[str] = None
    validation_errors: List[ValidationFinding] = Field(default_factory=list)
    error: Optional[str] = None


class ClaimTransport(Protocol):
    """Delivers one generated interchange to the payer gateway (SFTP, HTTP, ...)."""

    def upload(self, file_name: str, content: str) -> TransportResult:
        ...


class ClaimSubmissionService:
    """
    Generates the 837P for a claim and optionally hands it to a transport.

    Transport failures are reported, never retried here.
    """

    def __init__(self, encoder: Optional[ClaimEncoder] = None, transport: Optional[ClaimTransport] = None):
        self.encoder = encoder or ClaimEncoder()
        self.transport = transport

    def submit(self, request: ClaimSubmitRequest, claim_input: Claim837PInput) -> ClaimSubmitResponse:
        logger.info(f"Submitting claim {request.claim_id} (transport requested: {request.submit_via_transport})")
        result = self.encoder.generate(claim_input)

        if not result.success:
            logger.warning(f"Claim {request.claim_id} failed validation with {len(result.errors)} findings.")
            return ClaimSubmitResponse(
                success=False,
                claim_status=STATUS_VALIDATION_FAILED,
                validation_errors=result.errors,
                error="Validation failed",
            )

        response = dict(
            edi_content=result.edi_content,
            edi_content_formatted=result.edi_content_formatted,
            control_numbers=result.control_numbers,
            segment_count=result.segment_count,
            file_name=result.file_name,
            validation_errors=result.errors,
        )

        if not request.submit_via_transport:
            return ClaimSubmitResponse(success=True, claim_status=STATUS_READY, **response)

        if self.transport is None:
            logger.warning(f"Claim {request.claim_id}: transport requested but none is configured.")
            return ClaimSubmitResponse(
                success=False,
                claim_status=STATUS_READY,
                error="No claim transport configured",
                **response,
            )

        transport_result = self._upload(result.file_name, result.edi_content)
        if transport_result.success:
            logger.info(f"Claim {request.claim_id} submitted as {transport_result.remote_file_path}")
            status = STATUS_SUBMITTED
        else:
            logger.warning(f"Claim {request.claim_id} upload failed: {transport_result.error}")
            status = STATUS_SUBMISSION_FAILED

        return ClaimSubmitResponse(
            success=transport_result.success,
            claim_status=status,
            transport_result=transport_result,
            error=transport_result.error,
            **response,
        )

    def _upload(self, file_name: str, content: str) -> TransportResult:
        try:
            transport_result = self.transport.upload(file_name, content)
        except Exception as e:
            logger.error(f"Transport raised while uploading {file_name}: {e}", exc_info=True)
            return TransportResult(success=False, error=f"Upload failed: {e}")

        if transport_result.success and not transport_result.file_size:
            return TransportResult(
                success=False,
                remote_file_path=transport_result.remote_file_path,
                file_size=transport_result.file_size,
                uploaded_at=transport_result.uploaded_at,
                error="Uploaded file is empty; possible write failure",
            )
        return transport_result
