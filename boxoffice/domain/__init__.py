from .events.models import Event
from .tickets.models import Ticket, TicketStatus

__all__ = ("Event", "Ticket", "TicketStatus")
