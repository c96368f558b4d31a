"""
Route ingestion orchestrator.

Stores an uploaded GPX file and its route row, then derives features.

State machine per request:

    VALIDATING -> UPLOADING -> ROW_INSERTED -> DERIVING_FEATURES
        -> FEATURES_APPLIED | FEATURES_SKIPPED -> DONE

    UPLOADING | ROW_INSERTED -> ABORTED on failure

Upload and row-insert failures abort the request; a failed insert first
deletes the uploaded blob. Derivation failures never abort: the row is
already committed and stays visible with null derived fields.

There is no cross-store transaction and no retry. Uploading the same file
twice creates two routes.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from routebase.config import settings
from routebase.shared.errors import (
    DerivationError,
    InvalidFormatError,
    PersistenceError,
    StorageError,
    UnauthenticatedError,
    ValidationError,
)
from routebase.storage import BlobStore, GPX_CONTENT_TYPE, generate_object_key
from .derivation import RouteFeatures, derive_features
from .models import Route
from .parser import validate_track_structure
from .repository import RouteRepository
from .schemas import RouteCreate, parse_descriptive

logger = logging.getLogger(__name__)


class IngestionState(str, Enum):
    VALIDATING = "validating"
    UPLOADING = "uploading"
    ROW_INSERTED = "row_inserted"
    DERIVING_FEATURES = "deriving_features"
    FEATURES_APPLIED = "features_applied"
    FEATURES_SKIPPED = "features_skipped"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class IngestionResult:
    """Outcome of a successful ingestion."""

    route: Route
    outcome: IngestionState  # FEATURES_APPLIED or FEATURES_SKIPPED
    skipped_points: int = 0
    derivation_error: Optional[str] = None

    @property
    def features_applied(self) -> bool:
        return self.outcome == IngestionState.FEATURES_APPLIED


class RouteIngestionService:
    """
    Orchestrates GPX upload, row insertion and feature derivation.

    Usage:
        service = RouteIngestionService(db, blob_store)
        result = await service.ingest(owner_id, "ride.gpx", content, {"name": ..., "difficulty": ...})
    """

    def __init__(
        self,
        db: AsyncSession,
        blob_store: BlobStore,
        max_upload_bytes: Optional[int] = None
    ):
        self.db = db
        self.blob_store = blob_store
        self.routes = RouteRepository(db)
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        self.state = IngestionState.VALIDATING

    def _enter(self, state: IngestionState, route_id: Optional[str] = None) -> None:
        self.state = state
        logger.debug(f"Ingestion {route_id or '-'} -> {state.value}")

    # =========================================================================
    # Validating
    # =========================================================================

    def validate(
        self,
        owner_id: Optional[str],
        filename: Optional[str],
        content: bytes,
        metadata: Dict[str, Any]
    ) -> RouteCreate:
        """
        Reject bad input before any side effect.

        Raises:
            UnauthenticatedError: No owner
            ValidationError: Bad filename, empty/oversized/non-GPX content,
                or invalid descriptive fields
        """
        if not owner_id:
            raise UnauthenticatedError()

        if not filename or not filename.lower().endswith(".gpx"):
            raise ValidationError("File must have .gpx extension")
        if not content:
            raise ValidationError("File is empty")
        if len(content) > self.max_upload_bytes:
            raise ValidationError(
                f"File too large (max {self.max_upload_bytes // (1024 * 1024)}MB)"
            )

        try:
            validate_track_structure(content)
        except InvalidFormatError as e:
            logger.error(f"Invalid GPX upload from user {owner_id}, file {filename}: {e}")
            raise

        return parse_descriptive(RouteCreate, metadata)

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def ingest(
        self,
        owner_id: Optional[str],
        filename: Optional[str],
        content: bytes,
        metadata: Dict[str, Any]
    ) -> IngestionResult:
        """
        Ingest one GPX upload.

        Args:
            owner_id: Authenticated owner
            filename: Original filename
            content: Raw GPX bytes
            metadata: Descriptive fields (name, difficulty, scenery_description,
                additional_notes)

        Returns:
            IngestionResult; the route has derived fields populated when
            derivation succeeded, null otherwise

        Raises:
            UnauthenticatedError, ValidationError: Before any side effect
            StorageError: Upload failed, nothing was stored
            PersistenceError: Row insert failed, uploaded blob was removed
                (or the removal failure is attached)
        """
        self._enter(IngestionState.VALIDATING)
        request = self.validate(owner_id, filename, content, metadata)

        route_id = str(uuid.uuid4())
        object_key = generate_object_key(owner_id, route_id, filename)

        # === Uploading ===
        self._enter(IngestionState.UPLOADING, route_id)
        logger.info(f"Uploading GPX file {filename} ({len(content)} bytes) with key: {object_key}")
        try:
            await self.blob_store.put(object_key, content, GPX_CONTENT_TYPE)
        except StorageError:
            self._enter(IngestionState.ABORTED, route_id)
            logger.error(f"Upload failed for route {route_id}, nothing stored")
            raise

        # === Row insert ===
        route = await self._insert_route(route_id, owner_id, filename, content, object_key, request)
        self._enter(IngestionState.ROW_INSERTED, route_id)

        # === Derivation ===
        self._enter(IngestionState.DERIVING_FEATURES, route_id)
        try:
            features = derive_features(content)
        except DerivationError as e:
            logger.warning(f"Route {route_id} created without derived features: {e}")
            self._enter(IngestionState.FEATURES_SKIPPED, route_id)
            self._enter(IngestionState.DONE, route_id)
            return IngestionResult(
                route=route,
                outcome=IngestionState.FEATURES_SKIPPED,
                derivation_error=str(e),
            )

        outcome = await self._apply_features(route, features)
        self._enter(IngestionState.DONE, route_id)
        logger.info(f"Route created for user {owner_id}: {route.name} (ID: {route_id}, {outcome.value})")

        return IngestionResult(
            route=route,
            outcome=outcome,
            skipped_points=features.skipped_points,
        )

    async def _insert_route(
        self,
        route_id: str,
        owner_id: str,
        filename: str,
        content: bytes,
        object_key: str,
        request: RouteCreate
    ) -> Route:
        """
        Insert and commit the route row with derived fields null.

        The committed route is detached from the session so that a later
        rollback cannot expire it.
        """
        try:
            route = await self.routes.create(
                id=route_id,
                user_id=owner_id,
                name=request.name,
                difficulty=request.difficulty.value,
                scenery_description=request.scenery_description,
                additional_notes=request.additional_notes,
                filename=filename,
                object_key=object_key,
                file_size=len(content),
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            self._enter(IngestionState.ABORTED, route_id)
            logger.error(f"Failed to insert route {route_id} for user {owner_id}: {e}")
            try:
                await self.db.rollback()
            except SQLAlchemyError as rollback_error:
                logger.error(f"Rollback failed for route {route_id}: {rollback_error}")
            await self._compensate(object_key, e)
            raise  # _compensate always raises

        self.db.expunge(route)
        return route

    async def _compensate(self, object_key: str, error: SQLAlchemyError) -> None:
        """Delete the uploaded blob after a failed insert, then raise."""
        logger.info(f"Removing uploaded file after failed insert: {object_key}")
        try:
            await self.blob_store.delete(object_key)
        except StorageError as cleanup_error:
            logger.error(f"Failed to cleanup file after DB error {object_key}: {cleanup_error}")
            raise PersistenceError(
                f"Failed to save route: {error}",
                compensation_error=cleanup_error,
            ) from error
        raise PersistenceError(f"Failed to save route: {error}") from error

    async def _apply_features(self, route: Route, features: RouteFeatures) -> IngestionState:
        """Write all derived fields in one update; on failure they stay null."""
        values = features.as_columns()
        values["updated_at"] = datetime.utcnow()
        try:
            await self.routes.apply_features(route.id, values)
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to store derived features for route {route.id}: {e}")
            await self.db.rollback()
            self._enter(IngestionState.FEATURES_SKIPPED, route.id)
            return IngestionState.FEATURES_SKIPPED

        for column, value in values.items():
            setattr(route, column, value)
        self._enter(IngestionState.FEATURES_APPLIED, route.id)
        return IngestionState.FEATURES_APPLIED
