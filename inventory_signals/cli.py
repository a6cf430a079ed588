"""
Inventory Signals: CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs (product JSON, settings JSON).
  4. Execute action (classify, suggest, dispatch, reconcile).
  5. Report result to stdout.

Input files
-----------
``--products`` : JSON array of product objects::

    [{"id": "gid://shopify/Product/1", "name": "Mug", "stock": 2,
      "velocity": {"daily": 0.4}, "created_at": "2025-01-10",
      "last_sold_date": "2025-03-02", "price": 12.5, "category": "Kitchen"}]

``--settings`` : JSON object with optional ``shop``, ``notifications`` and
``visibility`` keys matching ``ShopInfo``, ``NotificationSettings`` and
``VisibilityPolicy``.

Install and run::

    pip install -e .
    inventory-signals --help
    inventory-signals validate-config
    inventory-signals classify --products products.json
    inventory-signals suggest --products products.json --data-driven
    inventory-signals send-alerts --products products.json --settings settings.json
    inventory-signals test-notifications --settings settings.json
    inventory-signals sync-visibility --settings settings.json
    inventory-signals visibility-status gid://shopify/Product/1 --settings settings.json
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="inventory-signals",
    help="Inventory signals: stock risk, suggestions, alerts and storefront visibility.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from inventory_signals.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from inventory_signals.utils.logging import configure_logging
    configure_logging(config.logging)


def _read_json_or_exit(path: str) -> Any:
    file_path = Path(path)
    if not file_path.exists():
        typer.echo(f"[ERROR] File not found: {file_path}", err=True)
        raise typer.Exit(code=1)
    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        typer.echo(f"[ERROR] JSON parse error: {exc}", err=True)
        raise typer.Exit(code=1)


def _load_models_or_exit(path: str, model_cls) -> list:
    """Validate a JSON array into ``model_cls`` instances, reporting the first 5 errors."""
    raw_items = _read_json_or_exit(path)
    if not isinstance(raw_items, list):
        typer.echo("[ERROR] Products file must contain an array.", err=True)
        raise typer.Exit(code=1)

    validated = []
    errors: list[tuple[int, str]] = []
    for i, raw in enumerate(raw_items):
        try:
            validated.append(model_cls(**raw))
        except Exception as exc:
            errors.append((i, str(exc)))

    if errors:
        typer.echo(f"[ERROR] {len(errors)} product(s) failed validation:", err=True)
        for idx, msg in errors[:5]:
            typer.echo(f"  Product #{idx}: {msg}", err=True)
        if len(errors) > 5:
            typer.echo(f"  ... and {len(errors) - 5} more.", err=True)
        raise typer.Exit(code=1)
    return validated


def _load_settings_or_exit(path: Optional[str]):
    """Return ``(ShopInfo, SettingsStore)`` from a settings JSON file."""
    from inventory_signals.models.notification import NotificationSettings
    from inventory_signals.models.product import ShopInfo
    from inventory_signals.models.visibility import VisibilityPolicy
    from inventory_signals.settings_store import SettingsStore

    raw = _read_json_or_exit(path) if path else {}
    if not isinstance(raw, dict):
        typer.echo("[ERROR] Settings file must contain an object.", err=True)
        raise typer.Exit(code=1)
    try:
        shop = ShopInfo(**raw.get("shop", {"name": "My Store"}))
        store = SettingsStore(
            notifications=NotificationSettings(**raw.get("notifications", {})),
            visibility=VisibilityPolicy(**raw.get("visibility", {})),
        )
    except Exception as exc:
        typer.echo(f"[ERROR] Settings validation failed: {exc}", err=True)
        raise typer.Exit(code=1)
    return shop, store


def _parse_date_or_exit(value: Optional[str]) -> date:
    from inventory_signals.utils.time_utils import today

    if value is None:
        return today()
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        typer.echo(f"[ERROR] Invalid date format: {exc}", err=True)
        raise typer.Exit(code=1)


def _build_reconciler(config, store):
    from inventory_signals.audit import LoggingAuditSink
    from inventory_signals.exceptions import ConfigurationError
    from inventory_signals.visibility.platform import ShopifyAdminClient
    from inventory_signals.visibility.reconciler import VisibilityReconciler
    from inventory_signals.visibility.throttle import build_throttle

    try:
        platform = ShopifyAdminClient.from_config(
            config.platform, page_size=config.visibility.catalog_page_size
        )
    except ConfigurationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    return VisibilityReconciler(
        platform,
        store,
        throttle_factory=lambda: build_throttle(config.visibility),
        audit=LoggingAuditSink(),
    )


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields (secrets masked).",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Forecast cutoffs:  critical<={config.forecast.critical_days}d, "
               f"warning<={config.forecast.warning_days}d")
    typer.echo(f"  Staleness policy:  {config.staleness.policy} "
               f"(threshold {config.staleness.threshold_days}d)")
    typer.echo(f"  Selection mode:    {config.suggestions.selection_mode}")
    typer.echo(f"  Alert threshold:   {config.notifications.default_threshold}")
    typer.echo(f"  SMTP host:         {config.notifications.smtp_host or '(log only)'}")
    typer.echo(f"  Throttle:          {config.visibility.throttle} "
               f"({config.visibility.delay_seconds}s)")
    typer.echo(f"  Shop domain:       {config.platform.shop_domain or '(not set)'}")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        dumped = config.model_dump()
        dumped["notifications"]["smtp_password"] = "***" if config.notifications.smtp_password else ""
        dumped["platform"]["access_token"] = "***" if config.platform.access_token else ""
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("classify")
def classify(
    products_file: str = typer.Option(..., "--products", "-p", help="Products JSON file."),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD)."),
    flagged_only: bool = typer.Option(False, "--flagged-only", help="Only print flagged products."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print stockout forecast and staleness tier for every product."""
    from inventory_signals.models.product import ProductSignal
    from inventory_signals.risk.classifier import classify_catalog
    from inventory_signals.risk.staleness import get_staleness_policy

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    now = _parse_date_or_exit(as_of)
    products = _load_models_or_exit(products_file, ProductSignal)
    policy = get_staleness_policy(config.staleness.policy, config.staleness.threshold_days)
    risks = classify_catalog(products, now, policy, config.forecast)

    typer.echo(f"Classified {len(risks)} product(s) as of {now} ({policy.name} policy):")
    for risk in risks:
        if flagged_only and not risk.is_flagged:
            continue
        days = risk.forecast.days_until_stockout
        typer.echo(
            f"  {risk.product.id} | stock={risk.product.stock} | "
            f"stockout={'-' if days is None else f'{days}d'} ({risk.forecast.status}) | "
            f"{risk.staleness.tier} ({risk.staleness.days_since_last_sale}d since sale)"
        )
    flagged = sum(1 for r in risks if r.is_flagged)
    typer.echo(f"[OK] {flagged} flagged.")


@app.command("suggest")
def suggest(
    products_file: str = typer.Option(..., "--products", "-p", help="Products JSON file."),
    product_id: Optional[str] = typer.Option(None, "--product-id", help="Limit to one product."),
    data_driven: bool = typer.Option(
        False, "--data-driven", help="Confidence-scored suggestions instead of rule-based."
    ),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD)."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print action suggestions for slow-moving products."""
    from inventory_signals.models.product import ProductSignal
    from inventory_signals.risk.staleness import compute_staleness, get_staleness_policy
    from inventory_signals.suggestions.data_driven import generate_data_driven
    from inventory_signals.suggestions.rules import generate

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    now = _parse_date_or_exit(as_of)
    products = _load_models_or_exit(products_file, ProductSignal)
    if product_id:
        products = [p for p in products if p.id == product_id]
        if not products:
            typer.echo(f"[ERROR] Product not found: {product_id}", err=True)
            raise typer.Exit(code=1)

    policy = get_staleness_policy(config.staleness.policy, config.staleness.threshold_days)
    mode = config.suggestions.selection_mode

    for product in products:
        staleness = compute_staleness(product.created_at, product.last_sold_date, now, policy)
        typer.echo(f"{product.id} ({product.name or 'untitled'}):")
        if data_driven:
            for s in generate_data_driven(product, staleness.days_since_last_sale, selection_mode=mode):
                typer.echo(f"  [{s.confidence}] {s.title}: {s.action}")
        else:
            for s in generate(product, staleness, config.staleness.threshold_days, selection_mode=mode):
                typer.echo(f"  [{s.urgency}] {s.title}: {s.expected_impact}")


@app.command("send-alerts")
def send_alerts(
    products_file: str = typer.Option(..., "--products", "-p", help="Products JSON file."),
    settings_path: Optional[str] = typer.Option(
        None, "--settings", "-s", help="Path to settings JSON file."
    ),
    threshold: Optional[int] = typer.Option(
        None, "--threshold", "-t", help="Low-stock threshold (default from config)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Send low-stock / out-of-stock alerts through every configured channel."""
    from inventory_signals.models.product import AlertProduct
    from inventory_signals.notifications.dispatcher import build_senders, dispatch_alerts

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    products = _load_models_or_exit(products_file, AlertProduct)
    shop, store = _load_settings_or_exit(settings_path)
    limit = threshold if threshold is not None else config.notifications.default_threshold

    report = dispatch_alerts(
        store.notifications, products, shop, limit, build_senders(config.notifications)
    )
    _echo_report(report)


@app.command("test-notifications")
def test_notifications(
    settings_path: Optional[str] = typer.Option(
        None, "--settings", "-s", help="Path to settings JSON file."
    ),
    email_only: bool = typer.Option(
        False, "--email-only", help="Send only the configuration-test e-mail."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Send a sample out-of-stock / low-stock alert to every configured channel."""
    from inventory_signals.notifications.dispatcher import build_senders, dispatch_test
    from inventory_signals.notifications.mailer import build_email_sender, send_test_email

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    shop, store = _load_settings_or_exit(settings_path)

    if email_only:
        result = send_test_email(
            store.notifications.email, shop, build_email_sender(config.notifications)
        )
        typer.echo(f"  email: {result.message}")
        if not result.success:
            raise typer.Exit(code=1)
        typer.echo("[OK] Test e-mail sent.")
        return

    _echo_report(dispatch_test(store.notifications, shop, build_senders(config.notifications)))


def _echo_report(report) -> None:
    for result in report.results:
        marker = "ok" if result.success else "FAILED"
        typer.echo(f"  {result.channel}: {marker} | {result.message}")
    if not report.success:
        typer.echo(f"[ERROR] {report.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[OK] {report.message}")


@app.command("sync-visibility")
def sync_visibility(
    settings_path: Optional[str] = typer.Option(
        None, "--settings", "-s", help="Path to settings JSON file."
    ),
    hide_out_of_stock: bool = typer.Option(
        False, "--hide-out-of-stock", help="Enable the policy and hide every zero-stock product."
    ),
    hide: Optional[list[str]] = typer.Option(
        None, "--hide", help="Hide this product id (repeatable)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Reconcile storefront visibility with stock levels."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    _, store = _load_settings_or_exit(settings_path)
    reconciler = _build_reconciler(config, store)

    if hide:
        outcome = reconciler.hide_selected(hide)
    elif hide_out_of_stock:
        outcome = reconciler.hide_out_of_stock()
    else:
        outcome = reconciler.sync_all()

    for product_id in outcome.hidden:
        typer.echo(f"  hidden: {product_id}")
    for product_id in outcome.shown:
        typer.echo(f"  shown:  {product_id}")
    for error in outcome.errors:
        typer.echo(f"  error:  {error}", err=True)

    if not outcome.success:
        typer.echo(f"[ERROR] {outcome.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[OK] {outcome.message}")


@app.command("visibility-status")
def visibility_status(
    product_id: str = typer.Argument(..., help="Platform product id."),
    settings_path: Optional[str] = typer.Option(
        None, "--settings", "-s", help="Path to settings JSON file."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Show current and desired visibility for one product."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    _, store = _load_settings_or_exit(settings_path)

    status = _build_reconciler(config, store).product_status(product_id)
    if status is None:
        typer.echo(f"[ERROR] Product not found: {product_id}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  {status.id} ({status.title})")
    typer.echo(f"  Status:            {status.status}")
    typer.echo(f"  Stock:             {status.stock}")
    typer.echo(f"  Visible:           {status.is_visible}")
    typer.echo(f"  Should be visible: {status.should_be_visible}")
    typer.echo(f"  Should be hidden:  {status.should_be_hidden}")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
