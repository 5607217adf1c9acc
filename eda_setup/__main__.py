from eda_setup.main import cli

cli()
