"""Certificate verification endpoint."""

from fastapi import APIRouter

from credledger.api.dependencies import RegistryDep
from credledger.api.models import APIResponse, CertificateResponse, certificate_to_response

router = APIRouter(prefix="/certificates", tags=["certificates"])


@router.get("/{certificate_id}", response_model=APIResponse[CertificateResponse])
def verify_certificate(
    certificate_id: str, registry: RegistryDep
) -> APIResponse[CertificateResponse]:
    """Verify a certificate. Unknown IDs return exists=false, is_valid=false."""
    verification = registry.verify_certificate(certificate_id)
    return APIResponse(data=certificate_to_response(verification))
