# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command Line Interface for svcdep.
"""
import logging
import os

import click

from ..CONVERTERS.to_systemd import SystemdConverter
from ..MANAGERS.resolution_engine import ResolutionEngine
from ..MODELS.stack_config import StackConfigError
from ..PARSERS.catalog_parser import CatalogParser
from ..PARSERS.stack_parser import StackParser
from ..REGISTRY.service_catalog import UnknownServiceError


@click.group()
@click.option('--file', '-f', default='stack.yml', envvar='SVCDEP_FILE', help='Stack file path')
@click.option('--catalog', '-c', default=None, envvar='SVCDEP_CATALOG',
              help='Catalog file replacing the built-in catalog')
@click.option('--verbose', '-v', is_flag=True, help='Log resolution steps')
@click.pass_context
def cli(ctx, file, catalog, verbose):
    """
    svcdep - Service dependency resolver.

    Checks a stack of enabled services and computes their startup order.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)
    ctx.obj['file'] = file
    try:
        base = CatalogParser().parse(catalog) if catalog else None
        ctx.obj['engine'] = ResolutionEngine(base)
        if os.path.exists(file):
            ctx.obj['stack'] = StackParser().parse(file)
    except (OSError, StackConfigError) as e:
        ctx.obj['error'] = str(e)


def _require_stack(ctx):
    error = ctx.obj.get('error')
    if error:
        click.echo(f"Error: {error}", err=True)
        ctx.exit(1)
    stack = ctx.obj.get('stack')
    if stack is None:
        click.echo(f"Error: {ctx.obj['file']} not found.", err=True)
        ctx.exit(1)
    return ctx.obj['engine'], stack


def _resolve(ctx):
    engine, stack = _require_stack(ctx)
    return engine.resolve(stack)


@cli.command()
@click.pass_context
def check(ctx):
    """Validate the stack and list fatal issues and warnings."""
    report = _resolve(ctx)
    text = report.render_text()
    if text:
        click.echo(text)
    if not report.ok:
        ctx.exit(1)
    click.echo(f"OK: {len(report.startup_order or [])} services, {len(report.warnings)} warnings")


@cli.command()
@click.pass_context
def order(ctx):
    """Print the service startup order."""
    report = _resolve(ctx)
    if not report.ok:
        click.echo(report.render_text(), err=True)
        ctx.exit(1)
    for name in report.startup_order:
        click.echo(name)


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON')
@click.pass_context
def report(ctx, as_json):
    """Print the full resolution report."""
    result = _resolve(ctx)
    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    click.echo(result.render_text() or "No issues.")
    if result.startup_order is not None:
        click.echo(f"{'SERVICE':20} {'AFTER'}")
        click.echo("-" * 40)
        for name in result.startup_order:
            directive = result.directives.get(name)
            after = ', '.join(directive.after) if directive else ''
            click.echo(f"{name:20} {after}")


@cli.command()
@click.option('--out', '-o', default='systemd', help='Output directory')
@click.pass_context
def systemd(ctx, out):
    """Write systemd ordering drop-ins for every service."""
    result = _resolve(ctx)
    if not result.ok:
        click.echo(result.render_text(), err=True)
        ctx.exit(1)
    SystemdConverter(result).convert(out)
    click.echo(f"Systemd drop-ins generated in {out}")


@cli.command()
@click.argument('services', nargs=-1, required=True)
@click.pass_context
def enable(ctx, services):
    """List SERVICES together with every provider they need."""
    if ctx.obj.get('error'):
        click.echo(f"Error: {ctx.obj['error']}", err=True)
        ctx.exit(1)
    engine = ctx.obj['engine']
    try:
        selection = engine.auto_enable(list(services), ctx.obj.get('stack'))
    except UnknownServiceError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    for name in selection:
        marker = "" if name in services else "  (dependency)"
        click.echo(f"{name}{marker}")


@cli.command(name='catalog')
@click.pass_context
def list_catalog(ctx):
    """List known services and their capabilities."""
    if ctx.obj.get('error'):
        click.echo(f"Error: {ctx.obj['error']}", err=True)
        ctx.exit(1)
    engine = ctx.obj['engine']
    stack = ctx.obj.get('stack')
    catalog = engine.catalog_for(stack) if stack is not None else engine.catalog

    click.echo(f"{'SERVICE':18} {'PROVIDES':40} {'REQUIRES'}")
    click.echo("-" * 80)
    for name in catalog:
        descriptor = catalog.get(name)
        click.echo(f"{name:18} {', '.join(descriptor.provides):40} {', '.join(descriptor.requires)}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
