"""Credential pool construction and masking."""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from structlog import get_logger

from studio_proxy.rotation.constants import MASK_VISIBLE_CHARS


logger = get_logger(__name__)


def mask_credential(credential: str, visible: int = MASK_VISIBLE_CHARS) -> str:
    """Mask a credential for safe display in logs and status output.

    Shows only the last ``visible`` characters (e.g. ``"...a1b2"``). Values
    too short to reveal a suffix safely are fully hidden.
    """
    if len(credential) > visible * 2:
        return f"...{credential[-visible:]}"
    return "***"


@dataclass(frozen=True)
class CredentialPool(Sequence[str]):
    """Ordered, immutable sequence of API credentials.

    May be empty; an empty pool is a configuration problem, distinct from
    every credential being exhausted.
    """

    credentials: tuple[str, ...] = ()

    @classmethod
    def from_candidates(cls, candidates: Iterable[str | None]) -> "CredentialPool":
        """Keep the non-empty string candidates, in order.

        Undefined, non-string, empty and whitespace-only entries are dropped.
        Duplicates are kept.
        """
        return cls(
            tuple(
                candidate
                for candidate in candidates
                if isinstance(candidate, str) and candidate.strip()
            )
        )

    def __getitem__(self, index: int) -> str:  # type: ignore[override]
        return self.credentials[index]

    def __len__(self) -> int:
        return len(self.credentials)

    def __iter__(self) -> Iterator[str]:
        return iter(self.credentials)

    def masked(self) -> list[str]:
        """Get masked representations of all credentials."""
        return [mask_credential(credential) for credential in self.credentials]


def build_credential_pool(
    candidates: Iterable[str | None],
    *,
    source: Sequence[str] = (),
) -> CredentialPool:
    """Build the credential pool from raw configuration values.

    Logs a diagnostic when no usable credential remains; the failure itself
    surfaces on first use.

    Args:
        candidates: Raw slot values, possibly empty or missing
        source: Names of the slots the candidates came from, for the diagnostic

    Returns:
        CredentialPool with the usable credentials in their original order
    """
    pool = CredentialPool.from_candidates(candidates)

    if not pool:
        logger.error(
            "no_credentials_configured",
            slots=list(source),
            message="No Gemini API key found. Define at least one credential slot.",
        )
    else:
        logger.info(
            "credential_pool_initialized",
            count=len(pool),
            credentials=pool.masked(),
        )

    return pool
