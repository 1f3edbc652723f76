"""Command line app for status strip previews."""
