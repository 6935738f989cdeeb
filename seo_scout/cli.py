# === FILE: seo_scout/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point for SEO Scout.

Commands:
  audit     Audit one page (or crawl the site with --depth > 1) and export the result
  crawl     Crawl a site breadth-first and print pages and issues
  serve     Run the HTTP API
  config    Show the effective configuration

Group options:
  --config PATH       YAML/JSON config (default: configs/default.yaml when present)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string
  --version, -v       Show the SEO Scout version

audit options:
  --depth N           Crawl depth; 0 or 1 audits the single page
  --json/--csv/--pdf/--html PATH   Write the report to a file
  --template NAME     Template name shown in the PDF title
  --pretty            Indent JSON output by 2
  --scan-timeout SEC  Deadline of the whole audit (seconds)

Example:
  seo-scout audit https://example.com --depth 2 --pdf reports/example.pdf
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from seo_scout import __version__
from seo_scout.config import load_config
from seo_scout.errors import SeoScoutError
from seo_scout.logger import init_logging
from seo_scout.report import render_csv, render_html, render_json, render_pdf, write_report
from seo_scout.scanner import start_audit, start_crawl
from seo_scout.web import run_app

CONTEXT_SETTINGS = dict(help_option_names=["--help"])
OUTPUT_PATH = click.Path(writable=True, dir_okay=False, path_type=Path)


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SEO Scout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON config file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file path (stderr only when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SEO Scout: on-page SEO audits and site crawls."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Failed to load config: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


def _run(coro, timeout):
    if timeout:
        return asyncio.run(asyncio.wait_for(coro, timeout=timeout))
    return asyncio.run(coro)


@cli.command('audit', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--depth', '-d', type=click.IntRange(min=0), default=None, help='Crawl depth (default from config)')
@click.option('--json', '-j', 'json_output', default=None, type=OUTPUT_PATH, help='Write JSON report')
@click.option('--csv', 'csv_output', default=None, type=OUTPUT_PATH, help='Write CSV report')
@click.option('--pdf', 'pdf_output', default=None, type=OUTPUT_PATH, help='Write PDF report')
@click.option('--html', 'html_output', default=None, type=OUTPUT_PATH, help='Write HTML report')
@click.option('--template', '-t', 'template', default='default', show_default=True, help='PDF template name')
@click.option('--pretty', is_flag=True, help='Indent JSON output by 2')
@click.option('--scan-timeout', 'scan_timeout', type=float, default=None, help='Audit deadline (seconds)')
@click.pass_context
def audit(ctx, url, depth, json_output, csv_output, pdf_output, html_output, template, pretty, scan_timeout):
    """Audit URL and print or save the report."""
    cfg = ctx.obj['config']
    try:
        data, _cached = _run(start_audit(cfg, url, depth), scan_timeout)
    except asyncio.TimeoutError:
        print_error(f'Audit did not finish within {scan_timeout} seconds')
    except (SeoScoutError, ValueError) as e:
        print_error(f'Audit failed: {e}')

    if not any((json_output, csv_output, pdf_output, html_output)):
        click.echo(render_json(data, pretty=pretty))
        return

    outputs = [
        (json_output, 'JSON', lambda: render_json(data, pretty=pretty)),
        (csv_output, 'CSV', lambda: render_csv(data)),
        (pdf_output, 'PDF', lambda: render_pdf(data, template)),
        (html_output, 'HTML', lambda: render_html(data, cfg.template_dir)),
    ]
    for path, label, render in outputs:
        if not path:
            continue
        try:
            saved = write_report(render(), path)
        except OSError as e:
            print_error(f'Failed to save {label} report: {e}')
        click.echo(f'{label} report: {saved}')


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--depth', '-d', type=click.IntRange(min=0), default=2, show_default=True, help='Maximum link depth')
@click.option('--limit', '-l', 'limit', type=click.IntRange(min=1), default=None, help='Max pages (override max_pages)')
@click.option('--pretty', is_flag=True, help='Indent JSON output by 2')
@click.pass_context
def crawl(ctx, url, depth, limit, pretty):
    """Crawl URL breadth-first and print pages and issues as JSON."""
    cfg = ctx.obj['config']
    if limit is not None:
        cfg = cfg.model_copy(update={'max_pages': limit})
    try:
        result = asyncio.run(start_crawl(cfg, url, depth))
    except (SeoScoutError, ValueError) as e:
        print_error(f'Crawl failed: {e}')
    click.echo(render_json(result.to_dict(), pretty=pretty))


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default=None, help='Bind address (default from config)')
@click.option('--port', type=click.IntRange(1, 65535), default=None, help='Port (default from config)')
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP API."""
    run_app(ctx.obj['config'], host=host, port=port)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(json.dumps(cfg.model_dump(mode='json'), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
