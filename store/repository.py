"""
Storage operations used by the ingestion pipeline and the ops commands.

Rows leave this module as plain dicts; SQLAlchemy sessions never escape it.
Errors are not caught here, they surface as sqlalchemy.exc.SQLAlchemyError.
"""

from typing import Optional

from sqlalchemy import select, text

from core.schemas import SourceSeed
from core.taxonomy import RUN_STATUSES, STREAM_KEYS
from store.database import create_db_engine, create_session_factory, init_db
from store.models import EditionModel, IngestionRunModel, SignalModel, SourceModel, new_id, utcnow

MAX_ERROR_LENGTH = 500
MAX_RUNS_LISTED = 100

SOURCE_FIELDS = (
    "id", "name", "type", "identifier", "provider_label", "tier", "enabled",
    "last_fetched_at_utc", "last_error",
)
RUN_FIELDS = (
    "id", "status", "started_at_utc", "finished_at_utc", "items_fetched", "items_created",
    "error_message", "log_text", "log_path", "triggered_by", "edition_id",
)
SIGNAL_FIELDS = (
    "id", "title", "summary", "rationale", "provider_key", "provider_label", "track_key",
    "track_label", "heat", "stream_key", "stream_label", "rank", "source_url", "source_domain",
    "citations", "confidence", "tier", "occurred_at_utc",
)


def _as_dict(model, fields):
    return {field: getattr(model, field) for field in fields}


def _signal_order(signal):
    """Headliners by rank, then the rest by stream."""
    stream = signal["stream_key"]
    stream_index = STREAM_KEYS.index(stream) if stream in STREAM_KEYS else len(STREAM_KEYS)
    rank = signal["rank"]
    return (rank is None, rank or 0, stream_index)


class SignalStore:
    def __init__(self, database_url=None, engine=None):
        self.engine = engine or create_db_engine(database_url)
        self.Session = create_session_factory(self.engine)

    def init_db(self):
        init_db(self.engine)

    def ping(self):
        """Round-trip a trivial query; raises when the database is unreachable."""
        with self.Session() as session:
            session.execute(text("SELECT 1"))
        return True

    # Runs

    def create_run(self, triggered_by, started_at=None):
        with self.Session.begin() as session:
            run = IngestionRunModel(
                id=new_id(),
                status="RUNNING",
                started_at_utc=started_at or utcnow(),
                triggered_by=triggered_by,
            )
            session.add(run)
        return run.id

    def finalize_run(
        self,
        run_id,
        status,
        items_fetched=0,
        items_created=0,
        error_message=None,
        log_text=None,
        log_path=None,
        edition_id=None,
        finished_at=None,
    ):
        if status not in RUN_STATUSES or status == "RUNNING":
            raise ValueError(f"Runs cannot be finalized as {status!r}")

        with self.Session.begin() as session:
            run = session.get(IngestionRunModel, run_id)
            if run is None:
                raise LookupError(f"Unknown run: {run_id}")

            run.status = status
            run.finished_at_utc = finished_at or utcnow()
            run.items_fetched = items_fetched
            run.items_created = items_created
            run.error_message = error_message
            run.log_text = log_text
            run.log_path = log_path
            if edition_id is not None:
                run.edition_id = edition_id

    def get_run(self, run_id):
        with self.Session() as session:
            run = session.get(IngestionRunModel, run_id)
            return _as_dict(run, RUN_FIELDS) if run else None

    def list_runs(self, limit=20):
        """Newest first; limit is clamped to 1..100."""
        limit = max(1, min(int(limit), MAX_RUNS_LISTED))
        with self.Session() as session:
            runs = session.scalars(
                select(IngestionRunModel)
                .order_by(IngestionRunModel.started_at_utc.desc())
                .limit(limit)
            ).all()
            return [_as_dict(run, RUN_FIELDS) for run in runs]

    def latest_run(self):
        runs = self.list_runs(limit=1)
        return runs[0] if runs else None

    # Sources

    def list_enabled_sources(self):
        """Enabled sources ordered by tier, then name."""
        with self.Session() as session:
            sources = session.scalars(
                select(SourceModel)
                .where(SourceModel.enabled.is_(True))
                .order_by(SourceModel.tier.asc(), SourceModel.name.asc())
            ).all()
            return [_as_dict(source, SOURCE_FIELDS) for source in sources]

    def list_sources(self):
        with self.Session() as session:
            sources = session.scalars(
                select(SourceModel).order_by(SourceModel.tier.asc(), SourceModel.name.asc())
            ).all()
            return [_as_dict(source, SOURCE_FIELDS) for source in sources]

    def get_source(self, source_id):
        with self.Session() as session:
            source = session.get(SourceModel, source_id)
            return _as_dict(source, SOURCE_FIELDS) if source else None

    def mark_source_fetched(self, source_id, fetched_at=None):
        with self.Session.begin() as session:
            source = session.get(SourceModel, source_id)
            if source is not None:
                source.last_fetched_at_utc = fetched_at or utcnow()
                source.last_error = None

    def mark_source_failed(self, source_id, message):
        with self.Session.begin() as session:
            source = session.get(SourceModel, source_id)
            if source is not None:
                source.last_error = (message or "")[:MAX_ERROR_LENGTH]

    def upsert_source(self, seed):
        """
        Create or update a source by name.

        Returns (source_dict, created). Invalid definitions raise
        pydantic.ValidationError before anything is written.
        """
        data = SourceSeed.model_validate(seed)

        with self.Session.begin() as session:
            source = session.scalars(
                select(SourceModel).where(SourceModel.name == data.name)
            ).first()

            created = source is None
            if created:
                source = SourceModel(id=new_id(), name=data.name)
                session.add(source)

            source.type = data.type
            source.identifier = data.identifier
            source.provider_label = data.provider_label
            source.tier = data.tier
            source.enabled = data.enabled

        return _as_dict(source, SOURCE_FIELDS), created

    # Editions

    def replace_edition(self, edition_date, counts, morning_note, drafts, generated_at=None):
        """
        Upsert the edition for edition_date and replace all of its signals.

        Runs in one transaction: readers see the old snapshot or the new
        one, never a mix. Returns the edition id.
        """
        generated_at = generated_at or utcnow()

        with self.Session.begin() as session:
            edition = session.scalars(
                select(EditionModel).where(EditionModel.date == edition_date)
            ).first()

            if edition is None:
                edition = EditionModel(id=new_id(), date=edition_date)
                session.add(edition)

            edition.generated_at_utc = generated_at
            edition.total_count = counts["total_count"]
            edition.hot_count = counts["hot_count"]
            edition.notable_count = counts["notable_count"]
            edition.quiet_count = counts["quiet_count"]
            edition.morning_note = morning_note
            session.flush()

            session.query(SignalModel).filter(
                SignalModel.edition_id == edition.id
            ).delete(synchronize_session=False)

            session.add_all([
                SignalModel(
                    id=new_id(),
                    edition_id=edition.id,
                    title=draft["title"],
                    summary=draft["summary"],
                    rationale=draft["rationale"],
                    provider_key=draft["provider_key"],
                    provider_label=draft["provider_label"],
                    track_key=draft["track_key"],
                    track_label=draft["track_label"],
                    heat=draft["heat"],
                    stream_key=draft["stream_key"],
                    stream_label=draft["stream_label"],
                    rank=draft["rank"],
                    source_url=draft["source_url"],
                    source_domain=draft["source_domain"],
                    citations=list(draft["citations"]),
                    confidence=draft["confidence"],
                    tier=draft["tier"],
                    occurred_at_utc=draft["occurred_at_utc"],
                )
                for draft in drafts
            ])

            edition_id = edition.id

        return edition_id

    def get_edition(self, edition_date) -> Optional[dict]:
        """Edition aggregates plus its signals, headliners first by rank."""
        with self.Session() as session:
            edition = session.scalars(
                select(EditionModel).where(EditionModel.date == edition_date)
            ).first()
            if edition is None:
                return None

            rows = session.scalars(
                select(SignalModel)
                .where(SignalModel.edition_id == edition.id)
                .order_by(SignalModel.occurred_at_utc.desc())
            ).all()
            signals = sorted((_as_dict(row, SIGNAL_FIELDS) for row in rows), key=_signal_order)

            return {
                "id": edition.id,
                "date": edition.date,
                "generated_at_utc": edition.generated_at_utc,
                "total_count": edition.total_count,
                "hot_count": edition.hot_count,
                "notable_count": edition.notable_count,
                "quiet_count": edition.quiet_count,
                "morning_note": edition.morning_note,
                "signals": signals,
            }

    def latest_edition_date(self):
        with self.Session() as session:
            return session.scalars(
                select(EditionModel.date).order_by(EditionModel.date.desc()).limit(1)
            ).first()


def open_store(database_url=None):
    """SignalStore for DATABASE_URL with its tables created."""
    store = SignalStore(database_url=database_url)
    store.init_db()
    return store
