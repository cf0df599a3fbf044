"""Selection policy for filters that match more than one instance."""

from __future__ import annotations

import logging
import random
import sys
import warnings
from collections.abc import Callable, Sequence

from sugar.constants import ConflictPolicy
from sugar.core.errors import NamingConflictError, NamingConflictWarning, NoMatchError
from sugar.core.interfaces import IntegerPrompt
from sugar.core.models import Instance, SelectionResult
from sugar.utils import format_instance_rows

logger = logging.getLogger(__name__)


def _echo_stderr(line: str) -> None:
    print(line, file=sys.stderr)


def has_naming_conflict(candidates: Sequence[Instance]) -> bool:
    """Whether the candidates disagree on their display name."""
    return len({candidate.name for candidate in candidates}) > 1


class Disambiguator:
    """Choose exactly one instance out of a match set.

    Several matches with one shared name are presumed to be replicas of the
    same service, so any of them is picked at random unless the operator asks
    to choose. Matches with different names are always listed first.

    Parameters
    ----------
    prompt : IntegerPrompt | None
        Numeric prompt used for interactive selection
    rng : random.Random | None
        Random source for replica selection
    conflict_policy : ConflictPolicy
        Whether a naming conflict still proceeds when not interactive
    echo : Callable[[str], None] | None
        Sink for the candidate listing (default: stderr)
    """

    def __init__(
        self,
        prompt: IntegerPrompt | None = None,
        rng: random.Random | None = None,
        conflict_policy: ConflictPolicy = ConflictPolicy.WARN,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self.prompt = prompt
        self.rng = rng or random.Random()
        self.conflict_policy = ConflictPolicy(conflict_policy)
        self.echo = echo or _echo_stderr

    def select(
        self, candidates: Sequence[Instance], interactive: bool = False, query: str = ""
    ) -> SelectionResult:
        """Pick one instance from ``candidates``.

        Parameters
        ----------
        candidates : Sequence[Instance]
            Match set, in inventory order
        interactive : bool
            Ask the operator instead of picking at random
        query : str
            Filter text, used in operator-facing messages

        Returns
        -------
        SelectionResult
            Chosen instance; ``candidate_count`` is always ``len(candidates)``

        Raises
        ------
        NoMatchError
            If ``candidates`` is empty
        NamingConflictError
            If names conflict, the policy refuses and the run is not interactive
        """
        candidates = tuple(candidates)

        if not candidates:
            raise NoMatchError(query)

        if len(candidates) == 1:
            return SelectionResult(instance=candidates[0], candidate_count=1)

        conflict = has_naming_conflict(candidates)

        if conflict:
            warnings.warn(NamingConflictWarning(query, candidates), stacklevel=2)
            self._list(candidates, with_index=interactive)

            if not interactive and self.conflict_policy is ConflictPolicy.REFUSE:
                raise NamingConflictError(query, candidates)
        elif interactive:
            self._list(candidates, with_index=True)

        if interactive:
            instance = self._ask(candidates)
        else:
            instance = self.rng.choice(candidates)

        logger.debug("Decided on %s", instance)
        return SelectionResult(
            instance=instance, candidate_count=len(candidates), naming_conflict=conflict
        )

    def _list(self, candidates: tuple[Instance, ...], with_index: bool) -> None:
        for row in format_instance_rows(candidates, with_index=with_index):
            self.echo(row)

    def _ask(self, candidates: tuple[Instance, ...]) -> Instance:
        if self.prompt is None:
            raise RuntimeError("Interactive selection requested without a prompt")

        index = self.prompt.prompt_integer(
            "Select an instance: ", range(len(candidates))
        )
        return candidates[index]
