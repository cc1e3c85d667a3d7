from .smtp_sender import MailSender, SendResult, get_sender

__all__ = ["MailSender", "SendResult", "get_sender"]
