"""
Remediation catalog: feature identifier -> ordered fixes.

The table is static data. It is assembled once at import time and exposed
read-only; the first fix of each entry is the preferred one.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional

from .models import (
    AddComment,
    AddDeclaration,
    Fix,
    RecommendPolyfill,
    Remediation,
    RemoveLine,
    ReplaceDeclaration,
    ReplaceText,
)
from .suppression import DIRECTIVE_MARKER


def _directive(feature_id: str) -> str:
    return f"({DIRECTIVE_MARKER} {feature_id})"


def _remove(feature_id: str, description: str) -> Remediation:
    return Remediation(feature_id, (RemoveLine(description=description),))


def _warn(feature_id: str, description: str, message: str) -> Remediation:
    text = f"WARNING: {message} {_directive(feature_id)}"
    return Remediation(feature_id, (AddComment(text=text, description=description),))


def _polyfill(feature_id: str, description: str, message: str) -> Remediation:
    text = f"{message} {_directive(feature_id)}"
    return Remediation(feature_id, (RecommendPolyfill(text=text, description=description),))


# ============================================================================
# STYLE
# ============================================================================

_STYLE_REMEDIATIONS = [
    Remediation("style-property.backdrop-filter", (
        AddDeclaration(
            property="background-color",
            value="rgba(0, 0, 0, 0.5)",
            description="Add a fallback 'background-color' for unsupported browsers.",
        ),
        AddComment(
            text="WARNING: 'backdrop-filter' is not Baseline. Provide a solid background fallback. "
                 + _directive("style-property.backdrop-filter"),
            description="Acknowledge warning for 'backdrop-filter'.",
        ),
    )),
    _remove("style-property.animation-timeline", "Remove non-Baseline 'animation-timeline' property."),
    _remove("style-property.text-wrap", "Remove 'text-wrap: balance' as it has no fallback."),
    _remove("style-property.scroll-timeline-name", "Remove scroll-driven animation property, no fallback exists."),
    _remove("style-property.view-transition-name", "Remove 'view-transition-name' as it requires a polyfill."),
    _remove("style-property.initial-letter", "Remove 'initial-letter' as it has no fallback."),
    _remove("style-property.mask-image", "Remove CSS masking property as it's not Baseline."),
    _remove("style-property.offset-path", "Remove 'offset-path' as it has no fallback."),
    _remove("style-property.overscroll-behavior", "Remove 'overscroll-behavior' for strict Baseline compliance."),
    _remove("style-property.accent-color", "Remove 'accent-color' for strict Baseline compliance."),
    _remove("style-property.font-palette", "Remove 'font-palette' as it's not Baseline."),
    _remove("style-property.color-scheme", "Remove 'color-scheme' for strict Baseline compliance."),
    _remove("style-property.scrollbar-gutter", "Remove 'scrollbar-gutter' as it is not Baseline."),
    _remove("style-property.scroll-snap-type", "Remove 'scroll-snap-type' as it is not Baseline."),
    _remove("style-property.scroll-behavior", "Remove 'scroll-behavior' as it is not Baseline."),
    _remove("style-property.image-rendering", "Remove 'image-rendering' as it is not Baseline and behavior varies."),
    _remove("style-property.field-sizing", "Remove 'field-sizing' as it has no fallback."),
    _remove("style-property.interpolate-size", "Remove 'interpolate-size' as it has no fallback."),
    _remove("style-property.content-visibility", "Remove 'content-visibility' for strict Baseline compliance."),
    _remove("style-property.text-box-trim", "Remove 'text-box-trim' as it is not Baseline."),
    Remediation("style-property.color-adjust", (
        ReplaceDeclaration(
            new_property="print-color-adjust",
            description="Replace deprecated 'color-adjust' with 'print-color-adjust'.",
        ),
    )),
    _warn("style-property.aspect-ratio", "Acknowledge warning for 'aspect-ratio'.",
          "'aspect-ratio' is not Baseline. Use the padding-top hack as a fallback."),
    _warn("style-property.mix-blend-mode", "Acknowledge warning for 'mix-blend-mode'.",
          "'mix-blend-mode' is not Baseline. Provide a fallback."),
    _warn("style-property.clip-path", "Acknowledge warning for 'clip-path'.",
          "'clip-path' is not Baseline. Consider an SVG fallback."),
    _warn("style-property.anchor-name", "Acknowledge warning for CSS anchor positioning.",
          "CSS anchor positioning is not Baseline. Position the element with JavaScript as a fallback."),
    _warn("style-property.position-anchor", "Acknowledge warning for CSS anchor positioning.",
          "CSS anchor positioning is not Baseline. Position the element with JavaScript as a fallback."),
    _warn("style-value.position-sticky", "Acknowledge warning for 'position: sticky'.",
          "'position: sticky' is not fully Baseline. Test thoroughly."),
    _warn("style-value.subgrid", "Warn that 'subgrid' has no simple fallback.",
          "'subgrid' is not Baseline and has no simple fallback."),
    _warn("style-function.color-mix", "Warn that 'color-mix()' needs a fallback color.",
          "'color-mix()' is not Baseline. Provide a fallback color."),
    _warn("style-function.oklch", "Warn that 'oklch()' needs a fallback color.",
          "'oklch()' is not Baseline. Provide a fallback `rgba()` color."),
    _warn("style-function.oklab", "Warn that 'oklab()' needs a fallback color.",
          "'oklab()' is not Baseline. Provide a fallback `rgba()` color."),
    _warn("style-function.trigonometric", "Warn that CSS trig functions need fallbacks.",
          "CSS trig functions are not Baseline. Provide a static fallback."),
    _warn("style-function.conic-gradient", "Acknowledge warning for 'conic-gradient()'.",
          "'conic-gradient()' is not Baseline. Provide a fallback image."),
    _warn("style-function.clamp", "Acknowledge warning for 'clamp()'.",
          "'clamp()' is not Baseline. Provide a media query fallback."),
    _warn("style-function.light-dark", "Acknowledge warning for 'light-dark()'.",
          "'light-dark()' is not Baseline. Use a prefers-color-scheme media query as a fallback."),
    _warn("style-at-rule.container", "Warn that container queries are not Baseline.",
          "Container queries are not Baseline and have no fallback."),
    _warn("style-at-rule.property", "Warn that '@property' is not Baseline.",
          "@property is not Baseline and has no fallback."),
    _warn("style-at-rule.layer", "Warn that cascade layers are not Baseline.",
          "@layer is not Baseline. Unlayered fallbacks win in older browsers."),
    _warn("style-at-rule.scope", "Warn that '@scope' is not Baseline.",
          "@scope is not Baseline. Use descendant selectors as a fallback."),
    _warn("style-at-rule.starting-style", "Warn that '@starting-style' is not Baseline.",
          "@starting-style is not Baseline. Entry transitions will not run in older browsers."),
    _warn("style-selector.has", "Acknowledge warning for ':has()' selector.",
          "The ':has()' selector is not Baseline. Use a class toggled from JavaScript as a fallback."),
    _warn("style-selector.focus-visible", "Acknowledge warning for ':focus-visible'.",
          "':focus-visible' is not Baseline. Consider a polyfill."),
]


# ============================================================================
# SCRIPT
# ============================================================================

_SCRIPT_REMEDIATIONS = [
    Remediation("script-api.keyCode", (
        ReplaceText(old="keyCode", new="key",
                    description="Replace deprecated 'keyCode' with modern 'key' property."),
    )),
    _polyfill("script-api.Object.hasOwn", "Recommend polyfill for 'Object.hasOwn'.",
              "TIP: 'Object.hasOwn' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Object.fromEntries", "Recommend polyfill for 'Object.fromEntries'.",
              "TIP: 'Object.fromEntries' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Array.at", "Recommend polyfill for 'Array.prototype.at()'.",
              "TIP: 'Array.prototype.at()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Array.flat", "Recommend polyfill for 'Array.prototype.flat()'.",
              "TIP: '.flat()' and '.flatMap()' are not Baseline. Consider a polyfill."),
    _polyfill("script-api.Array.findLast", "Recommend polyfill for 'Array.prototype.findLast()'.",
              "TIP: '.findLast()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Array.toReversed", "Recommend polyfill for 'Array.prototype.toReversed()'.",
              "TIP: '.toReversed()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Array.toSorted", "Recommend polyfill for 'Array.prototype.toSorted()'.",
              "TIP: '.toSorted()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Array.toSpliced", "Recommend polyfill for 'Array.prototype.toSpliced()'.",
              "TIP: '.toSpliced()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Array.with", "Recommend polyfill for 'Array.prototype.with()'.",
              "TIP: '.with()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Array.fromAsync", "Recommend polyfill for 'Array.fromAsync'.",
              "TIP: 'Array.fromAsync' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Promise.any", "Recommend polyfill for 'Promise.any()'.",
              "TIP: 'Promise.any()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Promise.allSettled", "Recommend polyfill for 'Promise.allSettled()'.",
              "TIP: 'Promise.allSettled()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Promise.withResolvers", "Recommend polyfill for 'Promise.withResolvers'.",
              "TIP: 'Promise.withResolvers' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.String.matchAll", "Recommend polyfill for 'String.prototype.matchAll()'.",
              "TIP: '.matchAll()' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.String.replaceAll", "Recommend polyfill for 'String.prototype.replaceAll()'.",
              "TIP: '.replaceAll()' is not Baseline. Use '.replace()' with a global RegExp instead."),
    _polyfill("script-api.Intl.Segmenter", "Recommend polyfill for 'Intl.Segmenter'.",
              "TIP: 'Intl.Segmenter' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.structuredClone", "Recommend polyfill for 'structuredClone'.",
              "TIP: 'structuredClone' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.Temporal", "Recommend polyfill for the 'Temporal' API.",
              "TIP: The 'Temporal' API is not Baseline. Consider the 'temporal-polyfill'."),
    _polyfill("script-api.ReadableStream", "Recommend polyfill for 'Web Streams API'.",
              "TIP: The Web Streams API is not Baseline. Consider the 'web-streams-polyfill'."),
    _polyfill("script-api.CompressionStream", "Recommend polyfill for 'CompressionStream'.",
              "TIP: 'CompressionStream' is not Baseline. Consider a library such as 'pako'."),
    _polyfill("script-api.WeakRef", "Recommend polyfill for 'WeakRef'.",
              "TIP: 'WeakRef' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.FinalizationRegistry", "Recommend polyfill for 'FinalizationRegistry'.",
              "TIP: 'FinalizationRegistry' is not Baseline. Consider a polyfill."),
    _polyfill("script-api.ResizeObserver", "Recommend polyfill for 'ResizeObserver'.",
              "TIP: 'ResizeObserver' is not Baseline. Consider the 'resize-observer-polyfill'."),
    _polyfill("script-api.IntersectionObserver", "Recommend polyfill for 'IntersectionObserver'.",
              "TIP: 'IntersectionObserver' is not Baseline. Consider the 'intersection-observer' polyfill."),
    _polyfill("script-api.globalThis", "Recommend polyfill for 'globalThis'.",
              "TIP: 'globalThis' is not Baseline. Fall back to 'window' or 'self'."),
    _warn("script-api.BigInt", "Acknowledge warning for 'BigInt'.",
          "'BigInt' is not Baseline and cannot be polyfilled."),
    _polyfill("script-api.Symbol", "Recommend polyfill for 'Symbol'.",
              "TIP: 'Symbol' is not fully Baseline. Consider a polyfill."),
    _polyfill("script-api.Map", "Recommend polyfill for 'Map'.",
              "TIP: 'Map' is not fully Baseline. Consider a polyfill."),
    _polyfill("script-api.Set", "Recommend polyfill for 'Set'.",
              "TIP: 'Set' is not fully Baseline. Consider a polyfill."),
    _warn("script-api.Worker", "Acknowledge warning for Web Workers.",
          "Web Workers are not fully Baseline. Check for 'Worker' in 'window'."),
    _warn("script-api.WebSocket", "Acknowledge warning for WebSockets.",
          "WebSockets are not fully Baseline. Provide a polling fallback."),
    _warn("script-api.PaymentRequest", "Acknowledge warning for the Payment Request API.",
          "The Payment Request API is not Baseline. Keep a regular checkout form as a fallback."),
    _warn("script-api.RTCPeerConnection", "Acknowledge warning for WebRTC.",
          "WebRTC is not Baseline. Check for 'RTCPeerConnection' before use."),
    _warn("script-api.EyeDropper", "Acknowledge warning for the EyeDropper API.",
          "The EyeDropper API is not Baseline. Fall back to <input type=\"color\">."),
    _warn("script-api.IdleDetector", "Acknowledge warning for the Idle Detection API.",
          "The Idle Detection API is not Baseline. Wrap calls in a feature detection block."),
    _warn("script-api.navigator.clipboard", "Acknowledge warning for the Clipboard API.",
          "The Clipboard API is not Baseline. Fall back to document.execCommand('copy')."),
    _warn("script-api.navigator.connection", "Acknowledge warning for the Network Information API.",
          "The Network Information API is not Baseline. Check for 'connection' in 'navigator'."),
    _warn("script-api.navigator.credentials", "Acknowledge warning for the Credential Management API.",
          "The Credential Management API is not Baseline. Check for 'credentials' in 'navigator'."),
    _warn("script-api.navigator.geolocation", "Acknowledge warning for the Geolocation API.",
          "The Geolocation API is not Baseline. Check for 'geolocation' in 'navigator'."),
    _warn("script-api.navigator.mediaDevices", "Acknowledge warning for the MediaDevices API.",
          "The MediaDevices API is not Baseline. Check for 'mediaDevices' in 'navigator'."),
    _warn("script-api.navigator.serviceWorker", "Acknowledge warning for the Service Worker API.",
          "The Service Worker API is not Baseline. Check for 'serviceWorker' in 'navigator'."),
    _warn("script-api.Navigator.vibrate", "Acknowledge warning for the Vibration API.",
          "The Vibration API is not Baseline. Check for 'vibrate' in 'navigator'."),
    _warn("script-api.Navigator.share", "Warn that the Web Share API requires feature detection.",
          "The Web Share API is not Baseline. Wrap calls in a `if (navigator.share)` block."),
    _warn("script-api.Navigator.requestMIDIAccess", "Warn that the Web MIDI API requires feature detection.",
          "The Web MIDI API is not Baseline. Wrap calls in a feature detection block."),
    _warn("script-api.Navigator.getDisplayMedia", "Warn that screen capture requires feature detection.",
          "Screen capture is not Baseline. Wrap calls in a feature detection block."),
    _warn("script-api.WakeLock", "Warn that the Screen Wake Lock API requires feature detection.",
          "The Screen Wake Lock API is not Baseline. Wrap calls in a feature detection block."),
    _warn("script-api.USB", "Warn that the WebUSB API requires feature detection.",
          "The WebUSB API is not Baseline. Wrap calls in a feature detection block."),
    _warn("script-api.localStorage", "Acknowledge warning for 'localStorage'.",
          "'localStorage' may be disabled by the user. Wrap access in try/catch."),
    _warn("script-api.sessionStorage", "Acknowledge warning for 'sessionStorage'.",
          "'sessionStorage' may be disabled by the user. Wrap access in try/catch."),
    _warn("script-api.Element.requestFullscreen", "Acknowledge warning for the Fullscreen API.",
          "The Fullscreen API is not Baseline. Check for vendor prefixes."),
    _warn("script-api.HTMLSelectElement.showPicker", "Acknowledge warning for 'showPicker()'.",
          "'showPicker()' is not Baseline. Check for it before calling."),
]


# ============================================================================
# MARKUP
# ============================================================================

_MARKUP_REMEDIATIONS = [
    _warn("markup-element.marquee", "Marquee element is deprecated",
          "<marquee> is deprecated. Use CSS animations instead."),
    _warn("markup-element.blink", "Blink element is deprecated",
          "<blink> is deprecated. Use CSS animations instead."),
    _warn("markup-element.center", "Center element is deprecated",
          "<center> is deprecated. Use CSS text-align instead."),
    _warn("markup-element.font", "Font element is deprecated",
          "<font> is deprecated. Use CSS font properties instead."),
    _warn("markup-element.big", "Big element is deprecated",
          "<big> is deprecated. Use CSS font-size instead."),
    _warn("markup-element.strike", "Strike element is deprecated",
          "<strike> is deprecated. Use <s> or CSS text-decoration instead."),
    _warn("markup-element.tt", "Tt element is deprecated",
          "<tt> is deprecated. Use <code> or CSS font-family instead."),
    _polyfill("markup-element.dialog", "Dialog element polyfill",
              "Consider using dialog-polyfill for <dialog> support."),
    _warn("markup-element.search", "Search element is not Baseline",
          "<search> is not Baseline. Add role=\"search\" to keep the landmark in older browsers."),
    _warn("markup-element.selectedcontent", "Selectedcontent element is not Baseline",
          "<selectedcontent> is not Baseline. Customizable selects fall back to the native control."),
    _polyfill("markup-attribute.popover", "Popover attribute is not Baseline",
              "WARNING: popover attribute is not Baseline. Consider fallback UI."),
    _polyfill("markup-attribute.inert", "Inert attribute polyfill",
              "Consider using wicg-inert polyfill for inert attribute."),
    _warn("markup-attribute.enterkeyhint", "Enterkeyhint attribute is not Baseline",
          "enterkeyhint is not Baseline. Virtual keyboards ignore it in older browsers."),
    _warn("markup-attribute.writingsuggestions", "Writingsuggestions attribute is not Baseline",
          "writingsuggestions is not Baseline and is ignored by most browsers."),
    _polyfill("markup-element.input.type_date", "Date input polyfill",
              "Consider using a date picker polyfill for <input type=\"date\">."),
    _polyfill("markup-element.input.type_color", "Color input polyfill",
              "Consider using a color picker polyfill for <input type=\"color\">."),
    _polyfill("markup-element.input.type_datetime_local", "Datetime-local input polyfill",
              "Consider using a date/time picker polyfill for <input type=\"datetime-local\">."),
    _polyfill("markup-element.input.type_month", "Month input polyfill",
              "Consider using a month picker polyfill for <input type=\"month\">."),
    _polyfill("markup-element.input.type_week", "Week input polyfill",
              "Consider using a week picker polyfill for <input type=\"week\">."),
    _polyfill("markup-element.input.type_time", "Time input polyfill",
              "Consider using a time picker polyfill for <input type=\"time\">."),
    _polyfill("markup-element.img.loading", "Loading lazy attribute",
              "Consider using loading=\"lazy\" polyfill or intersection observer."),
    _polyfill("markup-element.iframe.loading", "Loading lazy attribute",
              "Consider an intersection observer to lazy-load the <iframe>."),
]


class RemediationCatalog:
    """Read-only lookup over the remediation table."""

    def __init__(self, remediations: Iterable[Remediation]):
        table: Dict[str, Remediation] = {}
        for remediation in remediations:
            table[remediation.feature_id] = remediation
        self._table: Mapping[str, Remediation] = MappingProxyType(table)

    def lookup(self, feature_id: str) -> Optional[Remediation]:
        return self._table.get(feature_id)

    def preferred_fix(self, feature_id: str) -> Optional[Fix]:
        remediation = self._table.get(feature_id)
        return remediation.preferred if remediation else None

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self._table

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)


DEFAULT_CATALOG = RemediationCatalog(_STYLE_REMEDIATIONS + _SCRIPT_REMEDIATIONS + _MARKUP_REMEDIATIONS)


def lookup(feature_id: str) -> Optional[Remediation]:
    return DEFAULT_CATALOG.lookup(feature_id)
