"""Event system for decoupling the round engine from presentation.

The engine emits events without knowing about Rich or any UI layer.
Presentation layers (the simulation CLI, a web view) subscribe to these
events and render them however they like.
"""

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from peerround.round_engine.models import Cluster, Pairing, RoundResult, RoundWarning


class RoundEventHandler(Protocol):
    """Protocol for handlers that observe round advances."""

    def on_round_start(
        self,
        activity_id: str,
        round_number: int,
        participant_count: int,
        **kwargs: Any
    ) -> None:
        """Called once the store has been read and a round begins.

        Args:
            activity_id: Activity being advanced
            round_number: Number of the round being built
            participant_count: Participants taking part
            **kwargs: Additional context
        """
        ...

    def on_clusters_formed(
        self,
        clusters: list["Cluster"],
        **kwargs: Any
    ) -> None:
        """Called after participants have been grouped into clusters."""
        ...

    def on_pairings_created(
        self,
        pairings: list["Pairing"],
        **kwargs: Any
    ) -> None:
        """Called after the round's comparisons have been derived."""
        ...

    def on_warning(
        self,
        warning: "RoundWarning",
        message: str,
        **kwargs: Any
    ) -> None:
        """Called when a round degrades instead of failing.

        Args:
            warning: Which degraded condition occurred
            message: Human-readable explanation
            **kwargs: Additional context
        """
        ...

    def on_round_complete(
        self,
        result: "RoundResult",
        **kwargs: Any
    ) -> None:
        """Called with the finished round, before it is returned to the caller."""
        ...


class NullEventHandler:
    """Event handler that does nothing.

    Used as the default when no one is listening.
    """

    def on_round_start(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_clusters_formed(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_pairings_created(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_warning(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_round_complete(self, *args: Any, **kwargs: Any) -> None:
        pass
