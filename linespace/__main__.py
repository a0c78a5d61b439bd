from linespace.cli.main import app


app(prog_name="linespace")
