"""nodejs-repl - run and drive an interactive Node.js REPL from Python."""

__app_name__ = "nodejs-repl"
__version__ = "0.3.0"
