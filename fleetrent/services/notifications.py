"""
Outbound notices. Delivery (mail, PDF tickets, in-app messages) lives outside
the core; the default notifier just logs what would be sent.
"""
import logging

logger = logging.getLogger(__name__)


class Notifier:
    """Fire-and-forget contract. Subclasses override what they deliver."""

    def notify_approval(self, rental, ticket):
        pass

    def notify_rejection(self, rental, reason):
        pass

    def notify_return(self, rental):
        pass

    def notify_critical_maintenance(self, vehicle, issue):
        pass

    def notify_due_soon(self, rental):
        pass

    def notify_overdue(self, rental):
        pass


class LoggingNotifier(Notifier):

    def notify_approval(self, rental, ticket):
        logger.info("To %s: rental %s approved, ticket %s (%s to %s, %.2f)",
                    rental.username, rental.rental_id, ticket.ticket_id,
                    ticket.start_date, ticket.end_date, ticket.total_fee)

    def notify_rejection(self, rental, reason):
        logger.info("To %s: rental %s rejected: %s", rental.username, rental.rental_id, reason)

    def notify_return(self, rental):
        logger.info("To %s: rental %s returned, amount due %.2f",
                    rental.username, rental.rental_id, rental.actual_fee)

    def notify_critical_maintenance(self, vehicle, issue):
        logger.warning("CRITICAL MAINTENANCE ALERT - vehicle %s (%s): %s [severity %d/5, by %s]",
                       vehicle.vehicle_id, vehicle.plate_no, issue.description,
                       issue.severity, issue.reported_by)

    def notify_due_soon(self, rental):
        logger.info("To %s: rental %s is due back on %s", rental.username, rental.rental_id, rental.end_date)

    def notify_overdue(self, rental):
        logger.info("To %s: rental %s is overdue since %s", rental.username, rental.rental_id, rental.end_date)
