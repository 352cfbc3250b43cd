"""
govm - Go version manager.

Installs multiple Go toolchains side by side and transparently switches
which one the `go` and `gofmt` shims run, based on the GOVM_VERSION
environment variable, `.go-version` files and a global default.
"""

__version__ = "0.1.0"
