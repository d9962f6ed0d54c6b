"""REST adapters for the spa API (payments, points ledger, game configuration)."""

import logging
from decimal import Decimal

import httpx

from radiant.conf import radiant_settings
from radiant.exceptions import ClaimError, NetworkError, RadiantError
from radiant.models.game import GameDefinition, GameItem, GamePlay
from radiant.models.payment import CheckoutLine
from radiant.protocols.payments import CheckoutSessionInfo, PaymentIntent

logger = logging.getLogger(__name__)


def _claim_code(status_code: int, message: str, unavailable: str) -> str:
    """Infer the ClaimError code from an HTTP rejection."""
    text = (message or "").lower()
    if status_code == 402 or "insufficient" in text or ("need" in text and "points" in text):
        return "INSUFFICIENT_POINTS"
    if status_code in (409, 429) or "limit" in text:
        return "QUOTA_EXCEEDED"
    if status_code in (404, 410) or "inactive" in text or "not found" in text:
        return unavailable
    return "CLAIM_REJECTED"


def _malformed(path: str, body: dict) -> RadiantError:
    """A 2xx answer whose body lacks the fields the call needs."""
    logger.warning("%s returned an unexpected body: %r", path, body)
    return RadiantError("REQUEST_REJECTED", f"Unexpected response from {path}", path=path)


class RestBackend:
    """
    Shared httpx plumbing for the REST adapters.

    Each request opens a short-lived AsyncClient unless a client is injected.

    Args:
        base_url: API root (defaults to RADIANT["API_BASE_URL"])
        token: Bearer token of the signed-in user
        timeout: Seconds per request (defaults to RADIANT["API_TIMEOUT"])
        transport: Optional httpx transport (tests use httpx.MockTransport)
        client: Optional long-lived AsyncClient; not closed by the adapter
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url if base_url is not None else radiant_settings.API_BASE_URL
        self.token = token
        self.timeout = timeout if timeout is not None else radiant_settings.API_TIMEOUT
        self.transport = transport
        self.client = client

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _send(self, method: str, path: str, payload: dict | None = None) -> httpx.Response:
        try:
            if self.client is not None:
                return await self.client.request(
                    method, path, json=payload, headers=self._headers(), timeout=self.timeout
                )
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self.transport,
            ) as client:
                return await client.request(method, path, json=payload)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(path=path) from e

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict | None = None,
        rejected=None,
    ) -> dict:
        """
        Send a request and return the decoded JSON body.

        Raises:
            NetworkError: Transport failure or 5xx
            ClaimError / RadiantError: 4xx, or a body flagged unsuccessful
        """
        response = await self._send(method, path, payload)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        message = body.get("message") or body.get("error") or response.reason_phrase

        if response.status_code >= 500:
            logger.warning("%s %s returned %d", method, path, response.status_code)
            raise NetworkError(message, path=path, status=response.status_code)

        if response.status_code >= 400 or body.get("success") is False or body.get("status") == "fail":
            logger.info("%s %s rejected (%d): %s", method, path, response.status_code, message)
            if rejected is not None:
                raise rejected(response.status_code, message)
            raise RadiantError("REQUEST_REJECTED", message, path=path, status=response.status_code)

        return body


class RestPaymentBackend(RestBackend):
    """
    PaymentBackend over the stripe/payment endpoints.

    Configuration in settings.py:
        RADIANT = {
            "PAYMENT_BACKEND": "radiant.adapters.rest.RestPaymentBackend",
        }
    """

    async def create_checkout_session(
        self,
        lines: list[CheckoutLine],
        location_id: str,
        user_reward_id: str | None = None,
    ) -> CheckoutSessionInfo:
        payload = {
            "items": [line.to_payload() for line in lines],
            "locationId": location_id,
        }
        if user_reward_id:
            payload["userRewardId"] = user_reward_id

        body = await self._request("POST", "stripe/payment/create-checkout-session", payload)
        if not body.get("sessionUrl"):
            raise RadiantError("REQUEST_REJECTED", "Failed to create checkout session")
        return CheckoutSessionInfo(
            session_id=str(body.get("sessionId", "")),
            session_url=body["sessionUrl"],
        )

    async def create_payment_intent(
        self,
        service_id: str,
        booking_id: str | None = None,
        discount_code: str | None = None,
    ) -> PaymentIntent:
        payload = {"serviceId": service_id}
        if booking_id:
            payload["bookingId"] = booking_id
        if discount_code:
            payload["discountCode"] = discount_code

        path = "stripe/payment/create-intent"
        body = await self._request("POST", path, payload)
        try:
            return PaymentIntent(
                payment_intent_id=body["paymentIntentId"],
                client_secret=body["clientSecret"],
                amount=Decimal(str(body.get("amount") or "0")),
                points_earned=int(body.get("pointsEarned") or 0),
            )
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise _malformed(path, body) from e

    async def confirm_payment(self, payment_intent_id: str) -> bool:
        body = await self._request(
            "POST", "stripe/payment/confirm", {"paymentIntentId": payment_intent_id}
        )
        return body.get("status") == "succeeded"


class RestLedgerBackend(RestBackend):
    """LedgerBackend over auth/me, rewards/* and games/*/play."""

    async def get_balance(self, user_id: str) -> int:
        # auth/me answers for the token's user; user_id is kept for the protocol
        body = await self._request("GET", "auth/me")
        user = (body.get("data") or {}).get("user") or {}
        return int(user.get("points") or 0)

    async def claim_reward(self, reward_id: str) -> int:
        path = f"rewards/claim/{reward_id}"
        body = await self._request(
            "POST",
            path,
            rejected=lambda status, message: ClaimError(
                _claim_code(status, message, "REWARD_UNAVAILABLE"),
                message,
                reward_id=reward_id,
                status=status,
            ),
        )
        try:
            return int(body["data"]["newPointBalance"])
        except (KeyError, TypeError, ValueError) as e:
            raise _malformed(path, body) from e

    async def get_monthly_claim_count(self, user_id: str, reward_id: str) -> int:
        body = await self._request("GET", "rewards/catalog")
        for reward in (body.get("data") or {}).get("rewards", []):
            if str(reward.get("_id")) == str(reward_id):
                return int(reward.get("userClaimsThisMonth") or 0)
        return 0

    async def play_game(self, game_id: str) -> GamePlay:
        path = f"games/{game_id}/play"
        body = await self._request(
            "POST",
            path,
            rejected=lambda status, message: ClaimError(
                _claim_code(status, message, "GAME_UNAVAILABLE"),
                message,
                game_id=game_id,
                status=status,
            ),
        )
        try:
            result = body["data"]["result"]
            winning = result.get("winningItem") or {}
            return GamePlay(
                game_id=str(game_id),
                winning_item=GameItem(
                    title=winning.get("title", ""),
                    value=str(winning.get("value", "")),
                    value_type=winning.get("valueType") or radiant_settings.DEFAULT_VALUE_TYPE,
                    color=winning.get("color") or radiant_settings.DEFAULT_ITEM_COLOR,
                    id=str(winning["id"]) if winning.get("id") else None,
                ),
                points_spent=int(result.get("pointsSpent") or 0),
                points_won=int(result.get("pointsWon") or 0),
                new_balance=int(result["newPointsBalance"]),
                user_reward_id=str(result["userRewardId"]) if result.get("userRewardId") else None,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise _malformed(path, body) from e


class RestGameConfigBackend(RestBackend):
    """GameConfigBackend over games (POST) and games/{id} (PUT)."""

    async def save_game(self, game: GameDefinition) -> bool:
        if game.id:
            await self._request("PUT", f"games/{game.id}", game.to_dict())
        else:
            await self._request("POST", "games", game.to_dict())
        return True
