"""Prompt builders for the language-model stages"""
