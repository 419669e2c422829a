"""
# Generation Service

Request pipeline around the external card generator:

1. Resolve the caller's identity (account id, else guest id).
2. Validate the request: a topic or a file, 1-25 cards, an allowed document type.
3. Consume one call from the identity's quota through the `AdmissionGate`.
4. Load the system instruction template from the prompts collection and fill in `{{numCards}}`.
5. Call the injected `CardProvider`. Its failures propagate to the caller unchanged.
6. Keep the well-formed cards, at most the number requested.

Validation happens before the quota is touched, so malformed requests cost nothing.
"""

from typing import Any, List, Mapping, Optional, Protocol, Sequence

from pydantic import ValidationError

from flashdeck.config import settings
from flashdeck.database import DatabaseManager, db_manager
from flashdeck.database.operations import run_store_operation
from flashdeck.errors import InvalidArgumentError, NotFoundError, PromptTemplateError
from flashdeck.managers.logging_manager import get_logger
from flashdeck.models.generation_models import ALLOWED_MIME_TYPES, FilePayload, GenerationRequest
from flashdeck.models.workspace_models import Card
from flashdeck.services.admission_gate import AdmissionGate
from flashdeck.services.identity import is_guest_id, resolve_identity

logger = get_logger(prefix="[GenerationService]")

FILE_PROMPT_ID = "system_instruction_for_file"
TOPIC_PROMPT_ID = "system_instruction_for_topic"
NUM_CARDS_PLACEHOLDER = "{{numCards}}"


class CardProvider(Protocol):
    """The external generative content provider."""

    async def generate(
        self,
        *,
        topic: str,
        file: Optional[FilePayload],
        num_cards: int,
        system_instruction: str,
    ) -> Sequence[Mapping[str, Any]]:
        ...


def validate_generation_request(request: GenerationRequest, max_cards: int) -> None:
    """
    Raises:
        InvalidArgumentError: No topic and no file, card count outside `1..max_cards`, or a
            document type outside `ALLOWED_MIME_TYPES`.
    """
    has_topic = bool(request.topic and request.topic.strip())
    if not has_topic and request.file is None:
        raise InvalidArgumentError("A topic or a file is required")
    if request.num_cards < 1 or request.num_cards > max_cards:
        raise InvalidArgumentError(f"The number of cards must be between 1 and {max_cards}")
    if request.file is not None and request.file.mime_type not in ALLOWED_MIME_TYPES:
        raise InvalidArgumentError(f"File type {request.file.mime_type} is not allowed")


class GenerationService:
    def __init__(
        self,
        provider: CardProvider,
        gate: Optional[AdmissionGate] = None,
        database: Optional[DatabaseManager] = None,
        timeout: Optional[float] = None,
    ):
        self._provider = provider
        self._db = database if database is not None else db_manager
        self._gate = gate if gate is not None else AdmissionGate(database=self._db)
        self.timeout = timeout if timeout is not None else settings.STORE_OPERATION_TIMEOUT_SECONDS
        self.max_cards = settings.MAX_CARDS_PER_DECK
        self.prompts_collection = settings.PROMPTS_COLLECTION

    async def get_system_instruction(self, for_file: bool, num_cards: int) -> str:
        """
        Raises:
            NotFoundError: The prompt document does not exist.
            PromptTemplateError: The document has no `template` text.
        """
        prompt_id = FILE_PROMPT_ID if for_file else TOPIC_PROMPT_ID
        collection = self._db.get_collection(self.prompts_collection)
        doc = await run_store_operation("read prompt template", collection.find_one({"_id": prompt_id}), self.timeout)

        if doc is None:
            logger.error("Prompt document not found: %s", prompt_id)
            raise NotFoundError("prompt", prompt_id, message=f"Configuration document '{prompt_id}' not found")

        template = doc.get("template")
        if not isinstance(template, str) or not template:
            logger.error("Prompt document %s has no template", prompt_id)
            raise PromptTemplateError(f"Prompt template '{prompt_id}' is invalid")

        return template.replace(NUM_CARDS_PLACEHOLDER, str(num_cards))

    def _to_cards(self, raw_cards: Sequence[Mapping[str, Any]], num_cards: int) -> List[Card]:
        cards: List[Card] = []
        for index, raw in enumerate(raw_cards):
            try:
                cards.append(Card.model_validate(raw))
            except ValidationError as e:
                logger.warning("Dropping malformed generated card %d: %s", index, e.errors()[0]["msg"])
                continue
            if len(cards) == num_cards:
                break
        return cards

    async def generate_cards(
        self,
        request: GenerationRequest,
        user_id: Optional[str] = None,
        guest_id: Optional[str] = None,
    ) -> List[Card]:
        """
        Run the full generation pipeline for one request.

        Raises:
            UnauthenticatedError: Neither `user_id` nor `guest_id` is usable.
            InvalidArgumentError: The request is malformed (see `validate_generation_request`).
            QuotaExceededError: The identity's window is exhausted.
            NotFoundError / PromptTemplateError: The system instruction is unavailable.
        """
        identity = resolve_identity(user_id, guest_id)
        validate_generation_request(request, self.max_cards)

        await self._gate.check_and_consume(identity)

        system_instruction = await self.get_system_instruction(request.file is not None, request.num_cards)
        topic = request.topic.strip() if request.topic else ""

        raw_cards = await self._provider.generate(
            topic=topic,
            file=request.file,
            num_cards=request.num_cards,
            system_instruction=system_instruction,
        )
        cards = self._to_cards(raw_cards or [], request.num_cards)

        logger.info(
            "Generated %d cards for %s %s (requested %d)",
            len(cards),
            "guest" if is_guest_id(identity) else "user",
            identity,
            request.num_cards,
        )
        return cards
