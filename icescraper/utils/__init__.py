"""Shared helpers: timezone resolution, structured logging, retries, metrics"""
