"""Build and run single-file Rust programs through a shadow Cargo project."""

__version__ = "0.3.0"
