import enum
import logging
from dataclasses import dataclass
from typing import Optional

from route_obstacles.domain.errors import ObstacleError
from route_obstacles.domain.models.obstacle import ImageSource, Obstacle
from route_obstacles.domain.services.obstacle_registry import ObstacleRegistry

logger = logging.getLogger(__name__)


class FlowState(enum.Enum):
    CLOSED = "closed"
    DRAFTING = "drafting"
    SUBMITTING = "submitting"


@dataclass
class Draft:
    title: str = ''
    description: str = ''
    image_source: ImageSource = ImageSource.NONE


class CreationFlow:
    """
    State of the "new obstacle" form.

    CLOSED -> DRAFTING on open(); DRAFTING -> SUBMITTING on submit();
    SUBMITTING -> CLOSED on success, or back to DRAFTING carrying the
    failure message. While SUBMITTING, further submits are rejected so a
    single draft can never produce two obstacles.
    """

    def __init__(self, registry: ObstacleRegistry):
        self._registry = registry
        self.state = FlowState.CLOSED
        self.draft = Draft()
        self.error: Optional[str] = None

    def open(self) -> None:
        if self.state is not FlowState.CLOSED:
            raise RuntimeError(f"Cannot open creation flow while {self.state.value}")
        self.draft = Draft()
        self.error = None
        self.state = FlowState.DRAFTING

    def edit(
        self,
        title: Optional[str] = None,
        description: Optional[str] = None,
        image_source: Optional[ImageSource] = None,
    ) -> None:
        self._require(FlowState.DRAFTING)
        if title is not None:
            self.draft.title = title
        if description is not None:
            self.draft.description = description
        if image_source is not None:
            self.draft.image_source = image_source

    def submit(self) -> Optional[Obstacle]:
        """
        Hand the draft to the registry once its text fields are filled in.

        Returns:
            Optional[Obstacle]: The created obstacle, or None if creation
            failed and the flow is back in DRAFTING with ``error`` set
        """
        self._require(FlowState.DRAFTING)
        if not self.draft.title.strip() or not self.draft.description.strip():
            self.error = "Title and description are required"
            return None

        self.state = FlowState.SUBMITTING
        self.error = None
        try:
            obstacle = self._registry.create(
                self.draft.title,
                self.draft.description,
                self.draft.image_source,
            )
        except ObstacleError as e:
            logger.info(f"Obstacle creation failed: {e}")
            self.error = str(e)
            return None
        except Exception as e:
            self.error = f"Unexpected error: {e}"
            raise
        finally:
            if self.state is FlowState.SUBMITTING:
                self.state = FlowState.DRAFTING

        self.draft = Draft()
        self.state = FlowState.CLOSED
        return obstacle

    def close(self) -> None:
        """
        Abandon the draft. Not allowed while a submit is in progress.
        """
        if self.state is FlowState.SUBMITTING:
            raise RuntimeError("Cannot close creation flow while submitting")
        self.draft = Draft()
        self.error = None
        self.state = FlowState.CLOSED

    def _require(self, state: FlowState) -> None:
        if self.state is not state:
            raise RuntimeError(
                f"Creation flow is {self.state.value}, expected {state.value}"
            )
