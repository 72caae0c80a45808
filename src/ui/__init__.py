from . import admin, cart, favorites, guides, offers, profile, rates_board, settings, shop, testimonials

__all__ = [
	"shop",
	"offers",
	"cart",
	"favorites",
	"rates_board",
	"guides",
	"testimonials",
	"profile",
	"admin",
	"settings",
]
