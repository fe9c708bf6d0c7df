from shed.cli import app

app()
