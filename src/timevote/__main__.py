from timevote.cli import app

app()
