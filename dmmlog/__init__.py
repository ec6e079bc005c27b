"""Networked multimeter logging over SCPI."""
