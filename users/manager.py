"""
User Management for the monitoring bot
Handles persistent storage of user profiles and language preferences
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from botapp.i18n.languages import DEFAULT_LANGUAGE, Language


class UserManager:
    """
    Manages user profiles with persistent JSON storage

    Profiles are keyed by chat user id. The monitoring core only needs the
    language preference, which decides the templates used for that user.
    """

    def __init__(self, file_path: str = 'users.json') -> None:
        """
        Initialize the UserManager with persistent storage

        Args:
            file_path: Path to the JSON file for storing user data
        """
        self.file_path = Path(file_path)
        self.logger = logging.getLogger('UserManager')
        self._lock = threading.RLock()
        self.users: Dict[int, Dict[str, Any]] = self._load_users()

        self.logger.info(f"UserManager initialized with {len(self.users)} users from {file_path}")

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """
        Retrieve a single user profile by user ID

        Returns:
            Dict containing user profile data if found, None otherwise
        """
        with self._lock:
            user_profile = self.users.get(user_id)
            return dict(user_profile) if user_profile else None

    def save_user(self, user_profile: Dict[str, Any]) -> None:
        """
        Save or update a user profile

        Raises:
            ValueError: If user_profile lacks required 'user_id' key
        """
        if 'user_id' not in user_profile:
            raise ValueError("User profile must contain 'user_id' key")

        user_id = int(user_profile['user_id'])
        now_iso = datetime.utcnow().isoformat()
        with self._lock:
            profile = dict(user_profile)
            profile.setdefault('created_at', now_iso)
            profile.setdefault('language', DEFAULT_LANGUAGE.value)
            profile['updated_at'] = now_iso
            self.users[user_id] = profile
            self._save_users()

        self.logger.info(f"Saved user profile for user_id: {user_id}")

    def get_user_language(self, user_id: int) -> str:
        """Return the user's language code, defaulting for unknown users."""

        with self._lock:
            user_profile = self.users.get(user_id)
        if not user_profile:
            return DEFAULT_LANGUAGE.value
        return user_profile.get('language', DEFAULT_LANGUAGE.value)

    def set_user_language(self, user_id: int, language: str) -> bool:
        """
        Set the preferred language for a user, creating a bare profile if needed

        Returns:
            False when the language is not supported
        """
        resolved = Language.from_code(language)
        if resolved is None:
            self.logger.warning(f"Unsupported language {language!r} for user {user_id}")
            return False
        language = resolved.value

        with self._lock:
            profile = dict(self.users.get(user_id) or {'user_id': user_id})
            profile['language'] = language
            self.save_user(profile)
        self.logger.info(f"Set user {user_id} language to {language}")
        return True

    def _save_users(self) -> None:
        """Write user data to the JSON file. Caller must hold ``_lock``."""

        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.file_path, 'w', encoding='utf-8') as f:
                json.dump(self.users, f, indent=2, ensure_ascii=False, default=str)
            self.logger.debug(f"Saved {len(self.users)} user profiles to {self.file_path}")
        except OSError as e:
            self.logger.error(f"Error saving users to {self.file_path}: {e}", exc_info=True)
            raise

    def _load_users(self) -> Dict[int, Dict[str, Any]]:
        """
        Load user data from the JSON file

        Returns:
            Dictionary of user profiles; empty if the file is missing or invalid
        """
        if not self.file_path.exists() or self.file_path.stat().st_size == 0:
            self.logger.info(f"User file {self.file_path} is missing or empty, starting with empty user database")
            return {}

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in user file {self.file_path}: {e}")
            return {}

        # JSON keys are always strings
        users = {}
        for key, value in data.items():
            try:
                users[int(key)] = value
            except ValueError:
                self.logger.warning(f"Invalid user_id key in JSON file: {key}, skipping entry")
        self.logger.info(f"Loaded {len(users)} user profiles from {self.file_path}")
        return users
