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
Command Line Interface for dockdesc.
"""
import logging

import click

from ..exceptions import DescriptorError
from ..EXPORTERS.dockerfile_exporter import DockerfileExporter
from ..MODELS.export_settings import load_settings
from ..PARSERS.descriptor_yaml_parser import DescriptorYamlParser
from ..PARSERS.dockerfile_parser import DockerfileParser


@click.group()
@click.option('--env-file', type=click.Path(exists=True, dir_okay=False), default=None,
              help='.env file with DOCKDESC_* settings')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, env_file, verbose):
    """
    dockdesc - build Dockerfiles from a descriptor model.

    Renders YAML descriptors and re-formats existing Dockerfiles.
    """
    ctx.ensure_object(dict)
    try:
        settings = load_settings(env_file)
    except DescriptorError as e:
        raise click.ClickException(str(e))
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format='%(levelname)s %(name)s: %(message)s',
    )
    ctx.obj['settings'] = settings


def _export(ctx, parse, source, out):
    try:
        descriptor = parse(source)
        descriptor.export_to(out, DockerfileExporter(ctx.obj['settings']))
    except (DescriptorError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@cli.command()
@click.argument('descriptor_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--out', '-o', type=click.File('w'), default='-', help='Output file (default: stdout)')
@click.pass_context
def render(ctx, descriptor_file, out):
    """Render a YAML descriptor as a Dockerfile."""
    _export(ctx, DescriptorYamlParser().parse, descriptor_file, out)


@cli.command(name='format')
@click.argument('dockerfile', type=click.Path(exists=True, dir_okay=False))
@click.option('--out', '-o', type=click.File('w'), default='-', help='Output file (default: stdout)')
@click.pass_context
def format_dockerfile(ctx, dockerfile, out):
    """Re-render an existing Dockerfile through the descriptor model."""
    _export(ctx, DockerfileParser().parse, dockerfile, out)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
