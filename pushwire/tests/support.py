from __future__ import annotations

import asyncio
from collections.abc import Mapping

from cryptography.hazmat.primitives.asymmetric import ec

from pushwire.codec import decode_base64url
from pushwire.crypto import CryptographyProvider
from pushwire.transport import HttpResponse

# Key material from RFC 8291, Appendix A.
RFC_PLAINTEXT = b"When I grow up, I want to be a watermelon"
RFC_AS_PUBLIC = "BP4z9KsN6nGRTbVYI_c7VJSPQTBtkgcy27mlmlMoZIIgDll6e3vCYLocInmYWAmS6TlzAC8wEqKK6PBru3jl7A8"
RFC_AS_PRIVATE = "yfWPiYE-n46HLnH0KqZOF1fJJU3MYrct3AELtAQ-oRw"
RFC_UA_PUBLIC = "BCVxsr7N_eNgVRqvHtD0zTZsEc6-VV-JvLexhqUzORcxaOzi6-AYWXvTBHm4bjyPjs7Vd8pZGH6SRpkNtoIAiw4"
RFC_UA_PRIVATE = "q1dXpw3UpT5VOmu_cf_v6ih07Aems3njxI-JWgLcM94"
RFC_SALT = "DGv6ra1nlYgDCS1FRnbzlw"
RFC_AUTH = "BTBZMqHH6r4Tts7J_aSIgg"
RFC_BODY = (
    "DGv6ra1nlYgDCS1FRnbzlwAAEABBBP4z9KsN6nGRTbVYI_c7VJSPQTBtkgcy27mlmlMoZIIgDll6e3vCYLocInmYWAmS6TlzAC8w"
    "EqKK6PBru3jl7A_yl95bQpu6cVPTpK4Mqgkf1CXztLVBSt2Ks3oZwbuwXPXLWyouBWLVWGNWQexSgSxsj_Qulcy4a-fN"
)

API_KEY = "dev-api-key"


def private_key_from_b64(value: str) -> ec.EllipticCurvePrivateKey:
    return ec.derive_private_key(int.from_bytes(decode_base64url(value), "big"), ec.SECP256R1())


class FixedCryptoProvider(CryptographyProvider):
    """Replays a fixed ephemeral key and salt so ciphertexts can be compared."""

    def __init__(self, ephemeral_key: ec.EllipticCurvePrivateKey, salt: bytes) -> None:
        self.ephemeral_key = ephemeral_key
        self.salt = salt

    def generate_key_pair(self) -> ec.EllipticCurvePrivateKey:
        return self.ephemeral_key

    def random_bytes(self, length: int) -> bytes:
        assert length == len(self.salt)
        return self.salt


class RecordingHttpClient:
    """HttpClient fake answering from a per-endpoint script.

    A script entry is a status code, an exception to raise, or ``"hang"`` to
    block until the caller's timeout fires.
    """

    def __init__(self, responses: Mapping[str, object] | None = None, default: object = 201) -> None:
        self.responses = dict(responses or {})
        self.default = default
        self.requests: list[dict] = []
        self.closed = False

    async def post(self, url: str, *, headers: Mapping[str, str], content: bytes, timeout: float) -> HttpResponse:
        self.requests.append({"url": url, "headers": dict(headers), "content": content, "timeout": timeout})
        outcome = self.responses.get(url, self.default)
        if outcome == "hang":
            await asyncio.sleep(60)
        if isinstance(outcome, Exception):
            raise outcome
        return HttpResponse(status_code=int(outcome), text="scripted")

    async def aclose(self) -> None:
        self.closed = True
