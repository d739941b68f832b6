"""Network and GeoIP helpers"""
