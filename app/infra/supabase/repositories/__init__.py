"""Shared Supabase repository base"""
from .base import BaseRepository, RecordId

__all__ = ['BaseRepository', 'RecordId']
