"""Nexus Shell — a browser-style desktop shell modelled in Python.

The core is three cooperating subsystems: a reactive state store, a
virtual filesystem over the store's file tree, and a window manager
that keeps live window instances in step with the store.
"""
