"""Filesystem utilities."""

import os
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional


class Filesystem:
    """Filesystem utility functions."""
    
    @staticmethod
    def ancestors(start_path: str) -> Iterator[Path]:
        """
        Yield every parent directory of a path, nearest first.
        
        The walk stops once taking the parent no longer changes the path,
        so the filesystem root is the last directory yielded.
        """
        current_path = Path(os.path.abspath(start_path))
        
        while True:
            parent = current_path.parent
            if parent == current_path:  # Reached root
                break
            current_path = parent
            yield current_path
    
    @staticmethod
    def find_all_up(filename: str, start_path: str) -> List[str]:
        """
        Find every executable file named ``filename`` in the ancestors of a path.
        
        Directories that cannot be listed are skipped and the walk goes on.
        
        Returns:
            Matching paths, nearest directory first
        """
        matches = []
        for directory in Filesystem.ancestors(start_path):
            try:
                with os.scandir(directory) as entries:
                    names = [entry.name for entry in entries]
            except OSError:
                continue
            
            if filename in names:
                target_file = str(directory / filename)
                if Filesystem.is_executable(target_file):
                    matches.append(target_file)
        
        return matches
    
    @staticmethod
    def is_executable(file_path: str) -> bool:
        """
        Check if a path is a regular file the current user may execute.
        
        Args:
            file_path: Path to the file
            
        Returns:
            True if the file exists, is not a directory and has execute permission
        """
        return os.path.isfile(file_path) and os.access(file_path, os.X_OK)
    
    @staticmethod
    def modified_time(file_path: str) -> Optional[datetime]:
        """
        Get the modification time of a file.
        
        Returns:
            Local modification time, or None if the file cannot be stat'ed
        """
        try:
            return datetime.fromtimestamp(os.stat(file_path).st_mtime)
        except OSError:
            return None
    
    @staticmethod
    def normalize_path(path: str) -> str:
        """
        Normalize a file path.
        
        Args:
            path: Path to normalize, ``~`` is expanded
            
        Returns:
            Normalized absolute path
        """
        return os.path.abspath(os.path.expanduser(path))
