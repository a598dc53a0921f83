from reatheme.cli import app

app()
