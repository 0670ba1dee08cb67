"""CLI entry point for ResumeTailor."""

import logging
from pathlib import Path

import click
import structlog
from dotenv import load_dotenv

from resumetailor import __version__
from resumetailor.config import Config, load_config
from resumetailor.exceptions import ConfigError, PollingTimeout, ResumeTailorError
from resumetailor.gateway import CompletionGateway
from resumetailor.parsers.section_parser import extract_sections
from resumetailor.schemas.records import ProgressRecord, ResumeRecord
from resumetailor.schemas.tailoring import TailoringMode
from resumetailor.service import ProgressPoller, TailoringService
from resumetailor.stores import JsonFileStore
from resumetailor.utils.cache import create_completion_cache
from resumetailor.utils.diff import diff_sections, generate_change_summary
from resumetailor.utils.validation import validate_ats_safe_resume, validate_final_resume

# Load environment variables from .env file
load_dotenv()

# Configure logging (use console renderer for CLI)
structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
)

logger = structlog.get_logger(__name__)

DEFAULT_STORE_DIR = "./.resumetailor/store"
DEFAULT_CACHE_DIR = "./.resumetailor/cache"
DEFAULT_OWNER = "local"


def configure_log_level(level: str) -> None:
    """Drop log events below the configured level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
    )


def _load_config_or_defaults(config_path: Path) -> Config:
    if not config_path.exists():
        click.echo(f"⚙️  No config at {config_path}, using defaults")
        return Config()
    return load_config(config_path)


def _read_text(path: Path, label: str) -> str:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        click.echo(f"❌ {label} file is empty: {path}", err=True)
        raise click.Abort()
    return text


def _echo_progress(record: ProgressRecord) -> None:
    attempt = ""
    if record.current_attempt and record.max_attempts:
        attempt = f" (attempt {record.current_attempt}/{record.max_attempts})"
    click.echo(f"   [{record.progress:3d}%] {record.status}{attempt}")


@click.group()
@click.version_option(version=__version__)
def cli():
    """ResumeTailor: iterative resume tailoring against a job description."""
    pass


@cli.command()
@click.argument("resume", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("job_description", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mode", "-m", type=click.Choice([m.value for m in TailoringMode]), default=None,
              help="Tailoring mode (defaults to tailoring.default_mode)")
@click.option("--max-attempts", type=click.IntRange(min=1), default=None,
              help="Override tailoring.max_attempts")
@click.option("--config", "-c", "config_path", default="./config.yaml", type=click.Path(path_type=Path),
              help="Configuration file path")
@click.option("--store-dir", default=None, type=click.Path(file_okay=False, path_type=Path),
              help="Directory for resume, attempt and progress records")
@click.option("--resume-id", default=None, help="Record id (defaults to the resume file name)")
@click.option("--owner", default=DEFAULT_OWNER, show_default=True, help="Owner id for the record")
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False, path_type=Path),
              help="Write the tailored resume here instead of stdout")
@click.option("--no-cache", is_flag=True, default=False, help="Bypass the completion cache")
@click.option("--refine", is_flag=True, default=False,
              help="Tailor again on top of the stored record (bumps the version)")
def tailor(
    resume: Path,
    job_description: Path,
    mode: str | None,
    max_attempts: int | None,
    config_path: Path,
    store_dir: Path | None,
    resume_id: str | None,
    owner: str,
    output: Path | None,
    no_cache: bool,
    refine: bool,
):
    """Tailor RESUME to JOB_DESCRIPTION."""
    try:
        cfg = _load_config_or_defaults(config_path)
    except ConfigError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        raise click.Abort()

    configure_log_level(cfg.logging.get("level", "INFO"))
    if max_attempts is not None:
        cfg.tailoring = cfg.tailoring.model_copy(update={"max_attempts": max_attempts})

    resume_text = _read_text(resume, "Resume")
    jd_text = _read_text(job_description, "Job description")
    resume_id = resume_id or resume.stem
    tailoring_mode = TailoringMode(mode or cfg.tailoring.default_mode)

    store = JsonFileStore(store_dir or cfg.paths.get("store_dir", DEFAULT_STORE_DIR))
    existing = store.get(resume_id, owner)
    if refine and existing is None:
        click.echo(f"❌ Nothing to refine: no stored record '{resume_id}' for owner '{owner}'", err=True)
        raise click.Abort()

    store.add_resume(
        ResumeRecord(
            resume_id=resume_id,
            owner_id=owner,
            resume_text=resume_text,
            job_description=jd_text,
            tailoring_mode=tailoring_mode,
            version=existing.version if existing else 0,
        )
    )

    cache = create_completion_cache(
        cfg.gateway,
        cache_dir=cfg.paths.get("cache_dir", DEFAULT_CACHE_DIR),
        disable_cache=no_cache,
    )
    gateway = CompletionGateway(cfg, cache=cache)

    click.echo(f"🚀 Tailoring {resume} ({tailoring_mode.value}, up to {cfg.tailoring.max_attempts} attempts)")
    try:
        with TailoringService(cfg, gateway, store, store, store) as service:
            started = service.start_tailoring(resume_id, owner, is_refinement=refine)
            if not started.success:
                click.echo(f"❌ {started.error}", err=True)
                raise click.Abort()

            poller = ProgressPoller(
                service,
                interval_seconds=cfg.polling.interval_seconds,
                max_polls=cfg.polling.max_polls,
            )
            try:
                final = poller.wait(resume_id, owner, on_update=_echo_progress)
            except PollingTimeout as e:
                # Leaving the block waits for the job, so report first
                click.echo(f"⚠️  {e}", err=True)
                click.echo(f"   Check later with: resumetailor progress {resume_id}", err=True)
                click.echo("   Letting the running job finish before exiting (Ctrl+C to stop it)", err=True)
                raise click.Abort()
    finally:
        gateway.metrics.log_summary()
        gateway.close()

    record = store.get(resume_id, owner)
    if final.status != "completed":
        click.echo("❌ Tailoring failed", err=True)
        if record is not None and record.modified_resume:
            click.echo(record.modified_resume, err=True)
        raise click.Abort()

    click.echo(
        f"✅ Done: ATS {record.ats_score}, JD {record.jd_score}, "
        f"golden rules {'passed' if record.golden_passed else 'not passed'}, version {record.version}"
    )
    if record.modified_sections:
        click.echo(f"📝 Modified sections: {', '.join(record.modified_sections)}")

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(record.modified_resume + "\n", encoding="utf-8")
        click.echo(f"💾 Saved to {output}")
    else:
        click.echo()
        click.echo(record.modified_resume)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def sections(file: Path):
    """Print the sections found in FILE."""
    for name, body in extract_sections(file.read_text(encoding="utf-8")).items():
        click.echo(f"== {name} ({len(body.splitlines())} lines)")
        click.echo(body)
        click.echo()


@cli.command()
@click.argument("original", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("modified", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--threshold", type=click.FloatRange(0, 1), default=None,
              help="Significance threshold (defaults to tailoring.significance_threshold)")
def diff(original: Path, modified: Path, threshold: float | None):
    """Show the significant section changes between ORIGINAL and MODIFIED."""
    if threshold is None:
        threshold = Config().tailoring.significance_threshold
    changes = diff_sections(
        original.read_text(encoding="utf-8"),
        modified.read_text(encoding="utf-8"),
        threshold,
    )
    if not changes:
        click.echo("No significant changes")
        return
    for line in generate_change_summary(changes):
        click.echo(line)


@cli.command()
@click.argument("resume_id")
@click.option("--owner", default=DEFAULT_OWNER, show_default=True, help="Owner id for the record")
@click.option("--store-dir", default=DEFAULT_STORE_DIR, show_default=True,
              type=click.Path(file_okay=False, path_type=Path), help="Record directory")
def progress(resume_id: str, owner: str, store_dir: Path):
    """Show the progress record of RESUME_ID."""
    record = JsonFileStore(store_dir).get_progress(resume_id, owner)
    if record is None:
        click.echo(f"{resume_id}: not_started (0%)")
        return
    click.echo(f"{resume_id}: {record.status} ({record.progress}%)")
    if record.current_attempt:
        click.echo(f"   attempt {record.current_attempt}/{record.max_attempts}")
    click.echo(f"   updated {record.updated_at.isoformat()}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(file: Path):
    """Check FILE for structural and ATS-formatting problems."""
    text = file.read_text(encoding="utf-8")
    issues = validate_final_resume(text)
    warnings = validate_ats_safe_resume(text)
    for issue in issues:
        click.echo(f"❌ {issue}")
    for warning in warnings:
        click.echo(f"⚠️  {warning}")
    if not issues and not warnings:
        click.echo("✅ No problems found")
    if issues:
        raise SystemExit(1)


def main():
    try:
        cli()
    except ResumeTailorError as e:
        logger.error("command_failed", error=str(e), error_type=type(e).__name__)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
