"""
Contract for the move-search provider: the external "best move" oracle consulted for computer-controlled play.

(Can implement later for a native engine / UCI subprocess / remote service etc.)
The provider is never trusted: whatever it returns still goes through the normal legality checks.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Protocol

from src.core.exceptions import ProviderError
from src.core.shared_types import Color

logger = logging.getLogger(__name__)


class MoveSearchProvider(Protocol):
    """Move search orchestration"""

    def best_move(
        self, move_history_text: str, search_depth: int, searching_color: Color
    ) -> Optional[str]:
        """
        Best move for `searching_color` after the (space separated, coordinate notation) move history.
        Answer in coordinate notation: e2e4, e7e8q, O-O, O-O-O. None or "" when no move was found.
        """
        ...


def request_best_move(
    provider: MoveSearchProvider,
    move_history_text: str,
    search_depth: int,
    searching_color: Color,
    timeout: Optional[float] = None,
) -> str:
    """
    Ask the provider for a move, within `timeout` seconds if given.

    Raises ProviderError when the provider fails, misses its deadline, or has nothing to say.
    NOTE: the worker thread of a provider that missed its deadline is not killed, its answer just gets ignored.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="move-search")
    future = executor.submit(
        provider.best_move, move_history_text, search_depth, searching_color
    )
    try:
        answer = future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        logger.warning("move-search provider timed out after %ss", timeout)
        raise ProviderError(
            f"Move-search provider missed its {timeout}s deadline."
        ) from exc
    except Exception as exc:
        logger.warning("move-search provider failed: %s", exc)
        raise ProviderError(f"Move-search provider failed: {exc}") from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    if answer is not None and not isinstance(answer, str):
        logger.warning("move-search provider returned %r instead of text", answer)
        raise ProviderError(
            f"Move-search provider returned a {type(answer).__name__}, expected text."
        )
    if not answer or not answer.strip():
        logger.warning("move-search provider returned no move")
        raise ProviderError("Move-search provider returned no move.")
    logger.debug("provider suggests %s for %s", answer, searching_color)
    return answer.strip()
