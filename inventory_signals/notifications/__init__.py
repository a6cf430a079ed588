"""
Notification dispatch: stock alerts over e-mail, Slack and Discord.

Modules
-------
dispatcher : send_all() / test_all() / summarize() / dispatch_alerts():
             channel eligibility, candidate selection, failure isolation.
mailer     : EmailSender port, SmtpEmailSender / LoggingEmailSender, alert rendering,
             send_test_email().
webhooks   : SlackWebhookSender / DiscordWebhookSender (httpx) + payload builders.
"""
