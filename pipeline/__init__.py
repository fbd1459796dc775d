"""Narration pipeline"""
