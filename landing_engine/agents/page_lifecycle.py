"""
Page Lifecycle Controller - keeps the current page, the current record id and
the cached list of saved pages consistent across generate/edit/select/new/delete.
"""
from typing import Any, Dict, List, Optional

from landing_engine.agents.session_state import SessionState
from landing_engine.errors import ConfigurationError, NoContentError, PersistenceError, RecordNotFoundError
from landing_engine.logging_config import logger
from landing_engine.models import ContentModel, NotificationLevel, PersistedRecord, View
from landing_engine.services.persistence_gateway import PersistenceGateway

SAVE_FAILED_MESSAGE = "Your landing page could not be saved. It is shown unsaved; try again later."
DELETE_FAILED_MESSAGE = "The landing page could not be deleted. Please try again."
LOAD_FAILED_MESSAGE = "Saved landing pages could not be loaded."


class PageLifecycleController:
    """Delegates storage to the persistence gateway, owns the session's page state"""

    def __init__(self, persistence: PersistenceGateway):
        self.persistence = persistence

    async def on_new_content_model(
        self,
        state: SessionState,
        content: ContentModel
    ) -> Optional[PersistedRecord]:
        """
        Publish new content and save it.

        The content is adopted before the save. When the save fails it stays
        displayed but unsaved, and an error notification is raised. If the
        current record was deleted elsewhere, the page is saved as a new one.
        """
        state.content = content
        fields = content.to_record_fields()

        try:
            record = await self._save(state, fields)
        except (PersistenceError, ConfigurationError) as e:
            logger.error(
                "Landing page save failed",
                session_id=state.session_id,
                record_id=state.current_record_id,
                error=str(e)
            )
            state.notify(NotificationLevel.ERROR, SAVE_FAILED_MESSAGE)
            return None

        await self.refresh_records(state)
        return record

    async def _save(self, state: SessionState, fields: Dict[str, Any]) -> PersistedRecord:
        if state.current_record_id is not None:
            try:
                return await self.persistence.update(state.current_record_id, fields)
            except RecordNotFoundError:
                logger.warning(
                    "Current landing page no longer exists, saving as new",
                    session_id=state.session_id,
                    record_id=state.current_record_id
                )
                state.current_record_id = None

        record = await self.persistence.create(fields)
        state.current_record_id = record.id
        return record

    async def on_select(self, state: SessionState, record_id: str) -> Optional[ContentModel]:
        """Open a saved page in the preview"""
        try:
            record = await self.persistence.get(record_id)
        except (PersistenceError, ConfigurationError) as e:
            logger.error("Landing page load failed", record_id=record_id, error=str(e))
            state.notify(NotificationLevel.ERROR, LOAD_FAILED_MESSAGE)
            return None

        if record is None:
            raise RecordNotFoundError(record_id)

        state.current_record_id = record.id
        state.content = ContentModel.from_record(record)
        state.view = View.PREVIEW
        logger.info("Landing page selected", session_id=state.session_id, record_id=record.id)
        return state.content

    def on_new(self, state: SessionState) -> None:
        """Start over with an unsaved, empty page"""
        state.current_record_id = None
        state.content = None
        state.view = View.CHAT

    async def on_delete(self, state: SessionState, record_id: str) -> bool:
        """
        Delete a saved page, then refresh the cached list.

        Raises RecordNotFoundError for an unknown id, leaving the cache as is.
        """
        try:
            await self.persistence.delete(record_id)
        except RecordNotFoundError:
            raise
        except (PersistenceError, ConfigurationError) as e:
            logger.error("Landing page delete failed", record_id=record_id, error=str(e))
            state.notify(NotificationLevel.ERROR, DELETE_FAILED_MESSAGE)
            return False

        if state.current_record_id == record_id:
            state.current_record_id = None

        await self.refresh_records(state)
        return True

    async def on_edit(
        self,
        state: SessionState,
        changes: Dict[str, Any]
    ) -> Optional[PersistedRecord]:
        """Apply customization edits (text fields, theme, features) and save"""
        if state.content is None:
            raise NoContentError("No landing page to edit yet")

        merged = {**state.content.to_record_fields(), **_normalize_keys(changes)}
        return await self.on_new_content_model(state, ContentModel.model_validate(merged))

    async def on_feature_edit(
        self,
        state: SessionState,
        index: int,
        title: Optional[str] = None,
        description: Optional[str] = None
    ) -> Optional[PersistedRecord]:
        """Edit a single feature in place"""
        if state.content is None:
            raise NoContentError("No landing page to edit yet")

        features = [feature.model_dump() for feature in state.content.features]
        if not 0 <= index < len(features):
            raise IndexError(f"Feature index {index} out of range")

        if title is not None:
            features[index]["title"] = title
        if description is not None:
            features[index]["description"] = description

        return await self.on_edit(state, {"features": features})

    async def refresh_records(self, state: SessionState) -> List[PersistedRecord]:
        """Reload the cached list of saved pages (best effort)"""
        try:
            state.records = await self.persistence.list()
        except (PersistenceError, ConfigurationError) as e:
            logger.error("Landing page list failed", session_id=state.session_id, error=str(e))
            state.notify(NotificationLevel.ERROR, LOAD_FAILED_MESSAGE)
        return state.records


def _normalize_keys(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Accept camelCase or snake_case field names"""
    aliases = {
        field.alias: name
        for name, field in ContentModel.model_fields.items()
        if field.alias
    }
    return {aliases.get(key, key): value for key, value in changes.items()}
