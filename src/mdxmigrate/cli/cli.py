"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdxmigrate.cli.commands import analyze_cmd, migrate_cmd, purge_cmd, seed_registry_cmd, verify_cmd


app = typer.Typer(name="mdxmigrate", no_args_is_help=True, help="MDX to structured-content migration pipeline")

app.command(name="migrate")(migrate_cmd)
app.command(name="seed-registry")(seed_registry_cmd)
app.command(name="analyze")(analyze_cmd)
app.command(name="purge")(purge_cmd)
app.command(name="verify")(verify_cmd)
