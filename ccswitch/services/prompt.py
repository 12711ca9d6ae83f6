"""Prompt presets with one mutually exclusive active prompt per application."""

import logging

from ..config.state import AppState
from ..exceptions import InvalidOperationError, NotFoundError
from ..models.app import AppType
from ..models.prompt import Prompt
from ..utils.helpers import now_ts

logger = logging.getLogger(__name__)


class PromptService:
    """Manage prompt presets and the active prompt of each application."""

    def __init__(self, state: AppState) -> None:
        """Initialize prompt service.

        Args:
            state: Shared state handle
        """
        self.state = state

    def get_prompts(self, app: AppType) -> dict[str, Prompt]:
        """All prompts for ``app`` (copies)."""
        with self.state.read() as config:
            return {pid: p.model_copy(deep=True) for pid, p in config.prompts_for(app).items()}

    def get_prompt(self, app: AppType, prompt_id: str) -> Prompt:
        """A single prompt.

        Raises:
            NotFoundError: If the prompt does not exist
        """
        with self.state.read() as config:
            prompt = config.prompts_for(app).get(prompt_id)
            if prompt is None:
                raise NotFoundError("Prompt", prompt_id)
            return prompt.model_copy(deep=True)

    def enable_prompt(self, app: AppType, prompt_id: str) -> None:
        """Make ``prompt_id`` the only active prompt and project it.

        The flag moves from the previous holder to the new one inside a
        single exclusive-lock section, so readers never see zero or two
        active prompts. Enabling the already-active prompt changes nothing.

        Raises:
            NotFoundError: If the prompt does not exist
            ConfigSaveError: If the store cannot be saved (flags are restored)
            ProjectionError: If the prompt file cannot be written (store already saved)
        """
        with self.state.write() as config:
            prompts = config.prompts_for(app)
            target = prompts.get(prompt_id)
            if target is None:
                raise NotFoundError("Prompt", prompt_id)

            previously_enabled = [pid for pid, p in prompts.items() if p.enabled]
            if previously_enabled != [prompt_id]:
                for pid in previously_enabled:
                    prompts[pid].enabled = False
                target.enabled = True
                try:
                    self.state.persist()
                except Exception:
                    target.enabled = False
                    for pid in previously_enabled:
                        prompts[pid].enabled = True
                    raise
                logger.info("Activated %s prompt '%s'", app.value, prompt_id)

            self.state.projector(app).write_prompt(target.content)

    def disable_prompt(self, app: AppType, prompt_id: str) -> None:
        """Deactivate a prompt and empty the application's prompt file.

        Raises:
            NotFoundError: If the prompt does not exist
        """
        with self.state.write() as config:
            target = config.prompts_for(app).get(prompt_id)
            if target is None:
                raise NotFoundError("Prompt", prompt_id)
            if not target.enabled:
                return
            target.enabled = False
            try:
                self.state.persist()
            except Exception:
                target.enabled = True
                raise
            logger.info("Deactivated %s prompt '%s'", app.value, prompt_id)
            self.state.projector(app).write_prompt("")

    def upsert(self, app: AppType, prompt: Prompt) -> bool:
        """Create or replace a prompt; re-project it when it is active.

        The stored ``enabled`` flag is kept from the existing prompt; use
        ``enable_prompt`` to change the active prompt.

        Returns:
            True if the prompt is new
        """
        with self.state.write() as config:
            prompts = config.prompts_for(app)
            old = prompts.get(prompt.id)
            ts = now_ts()
            prompt = prompt.model_copy(
                deep=True,
                update={
                    "enabled": old.enabled if old else False,
                    "created_at": (old.created_at if old else None) or prompt.created_at or ts,
                    "updated_at": ts,
                },
            )
            prompts[prompt.id] = prompt
            try:
                self.state.persist()
            except Exception:
                if old is None:
                    del prompts[prompt.id]
                else:
                    prompts[prompt.id] = old
                raise
            logger.info("%s %s prompt '%s'", "Added" if old is None else "Updated", app.value, prompt.id)
            if prompt.enabled:
                self.state.projector(app).write_prompt(prompt.content)
        return old is None

    def delete(self, app: AppType, prompt_id: str) -> None:
        """Remove a prompt that is not active.

        Raises:
            InvalidOperationError: If the prompt is active
            NotFoundError: If the prompt does not exist
        """
        with self.state.write() as config:
            prompts = config.prompts_for(app)
            target = prompts.get(prompt_id)
            if target is None:
                raise NotFoundError("Prompt", prompt_id)
            if target.enabled:
                raise InvalidOperationError(
                    f"Cannot delete the active {app.value} prompt '{prompt_id}'. Disable it first."
                )
            del prompts[prompt_id]
            try:
                self.state.persist()
            except Exception:
                prompts[prompt_id] = target
                raise
        logger.info("Deleted %s prompt '%s'", app.value, prompt_id)
