"""Credential and session lifecycle for the lyric trivia backend."""
