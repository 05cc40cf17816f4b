from fastapi import APIRouter, Depends, Response, status

from banner_service.api.deps import get_token_signer, require_roles
from banner_service.services.token_signer import TokenSigner

router = APIRouter(dependencies=[Depends(require_roles("admin"))])


@router.post('/tracking-secret/rotate', status_code=status.HTTP_204_NO_CONTENT)
def rotate_tracking_secret(signer: TokenSigner = Depends(get_token_signer)):
    signer.rotate_secret()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
