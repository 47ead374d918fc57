"""FastAPI dependency that only lets verified notifications through.

::

    from fastapi import Depends, FastAPI
    from ipn.sdk.dependencies import VerifiedIPN

    app = FastAPI()
    verified_ipn = VerifiedIPN()

    @app.post("/ipn")
    async def ipn(envelope: NotificationEnvelope = Depends(verified_ipn)):
        ...
"""

# Annotations stay eager: FastAPI inspects __call__ at runtime.
from fastapi import HTTPException, Request

from ipn.protocol.envelope import NotificationEnvelope
from ipn.sdk.verifier import SignatureVerifier


class VerifiedIPN:
    """Callable dependency returning the verified envelope.

    Unverified requests are answered with *status_code* and never reach
    the route.  The response carries no detail about which step failed.
    """

    def __init__(
        self,
        verifier: SignatureVerifier | None = None,
        status_code: int = 403,
    ) -> None:
        self._verifier = verifier
        self._status_code = status_code

    @property
    def verifier(self) -> SignatureVerifier:
        # Built lazily so importing an app module never reads env config
        if self._verifier is None:
            self._verifier = SignatureVerifier()
        return self._verifier

    async def __call__(self, request: Request) -> NotificationEnvelope:
        envelope, verified = await self.verifier.verify_request(request)
        if not verified or envelope is None:
            raise HTTPException(status_code=self._status_code, detail="IPN verification failed")
        return envelope
