from clusterops.cli.main import app

app()
