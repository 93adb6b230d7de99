"""
SQLAlchemy TypeDecorator for transparent field encryption.

Usage:
    from hotelpms.core.encrypted_type import EncryptedString

    class Guest(Base):
        id_number = Column(EncryptedString, nullable=True)
"""

from sqlalchemy import Text, TypeDecorator

from hotelpms.core.encryption import decrypt_value, encrypt_value, is_encrypted


class EncryptedString(TypeDecorator):
    """
    Encrypts on write, decrypts on read.

    Plain values already in the column (rows written before encryption was
    enabled) are returned unchanged.
    """

    impl = Text  # encrypted values are longer than originals
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if is_encrypted(value):
            return value
        return encrypt_value(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if is_encrypted(value):
            return decrypt_value(value)
        return value
