"""Command line tool for fastboot-deploy."""
