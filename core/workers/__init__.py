#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Worker thread infrastructure
"""

from .base_worker import BaseWorkerThread

__all__ = ['BaseWorkerThread']
