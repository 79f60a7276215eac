"""Streaming transport handlers"""
